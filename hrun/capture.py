"""hrun capture - pull values out of JSON response bodies into variables."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from hrun.models import CaptureRule

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Segment types returned by _parse_path_segments:
#   str  → dict key  (exact match)
#   int  → list index
# ---------------------------------------------------------------------------

_INT_RE = re.compile(r"^\d+$")
_BRACKETS_RE = re.compile(r"^([^\[]*)((?:\[[^\]]*\])+)$")


def _parse_path_segments(path: str) -> list[str | int]:
    """Parse a capture path into typed segments.

    Supports:
      token                  → key
      user.id                → key, key
      items.0.id             → key, 0, key   (numeric dot segment = index)
      items[0].id            → key, 0, key
      $.user.id              → key, key      (leading root marker dropped)
    """
    path = path.strip()
    if path.startswith("$"):
        path = path[1:]

    segments: list[str | int] = []
    for part in path.split("."):
        part = part.strip()
        if not part:
            continue

        m = _BRACKETS_RE.match(part)
        if m:
            key_part = m.group(1).strip()
            if key_part:
                segments.append(_classify(key_part))
            for bracket in re.findall(r"\[([^\]]*)\]", m.group(2)):
                segments.append(_classify(bracket.strip().strip("'\"")))
        else:
            segments.append(_classify(part))

    return segments


def _classify(part: str) -> str | int:
    if _INT_RE.match(part):
        return int(part)
    return part


def _walk(data: Any, segments: list[str | int]) -> tuple[bool, Any]:
    current = data
    for seg in segments:
        if isinstance(current, dict):
            key = str(seg)
            if key not in current:
                return False, None
            current = current[key]
        elif isinstance(current, list) and isinstance(seg, int):
            if seg >= len(current):
                return False, None
            current = current[seg]
        else:
            return False, None
    return True, current


def extract_value(data: Any, path: str) -> tuple[bool, Any]:
    """Look up path in decoded JSON data. Returns (found, value)."""
    segments = _parse_path_segments(path)
    if not segments:
        return False, None
    return _walk(data, segments)


def stringify(value: Any) -> str:
    """Render a JSON value the way it should appear inside a request."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        # Plain decimal notation, never exponent form.
        return format(Decimal(repr(value)), "f")
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def capture(body: str, rules: Iterable[CaptureRule]) -> dict[str, str]:
    """Apply capture rules to a response body.

    A body that is not JSON yields nothing, and a rule whose path is not
    found is skipped without affecting the others.
    """
    rules = list(rules)
    if not rules:
        return {}

    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError, ValueError):
        logger.debug("Response body is not JSON; skipping %d capture(s)", len(rules))
        return {}

    captured: dict[str, str] = {}
    for rule in rules:
        found, value = extract_value(data, rule.path)
        if not found:
            logger.debug("Capture %s: path %r not found", rule.variable, rule.path)
            continue
        captured[rule.variable] = stringify(value)
    return captured
