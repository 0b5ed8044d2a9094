"""hrun parser - turn .http file text into requests and file variables.

The format is hand-written and loosely structured, so parsing is a single
forward scan where every line goes through an ordered chain of handlers.
The first handler that consumes a line wins; nothing is ever rejected,
sections without a method and URL are simply dropped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from hrun.models import METHODS, CaptureRule, HTTPFile, Request

logger = logging.getLogger(__name__)

_SEPARATOR_RE = re.compile(r"^###\s*(.*)$")
_REQUEST_LINE_RE = re.compile(
    r"^(" + "|".join(METHODS) + r")\s+(.+?)(?:\s+HTTP/[\d.]+)?$",
)
_VERSION_LINE_RE = re.compile(r"^\s*HTTP/\d(?:\.\d)?\s*$")
_VARIABLE_RE = re.compile(r"^@([^=]+)=(.*)$")
_CAPTURE_RE = re.compile(r"^@capture\s+(\w+)\s*=\s*(.+)$")

# A "header" name containing any of these is really a body line.
_NON_HEADER_CHARS = frozenset(' \t"{}<>[]')
_BODY_OPENERS = ("{", "[", "<")
_COMMENT_MARKERS = ("#", "//")


@dataclass
class _ParseState:
    file: HTTPFile
    line_number: int = 0
    current: Request | None = None
    in_body: bool = False
    body_lines: list[str] = field(default_factory=list)
    description_lines: list[str] = field(default_factory=list)

    def flush(self) -> None:
        """Emit the request under construction if it is complete."""
        request = self.current
        if request is None:
            return
        if not request.is_complete():
            logger.debug(
                "Dropping section %r at line %d: no method and URL",
                request.name,
                request.source_line,
            )
            return
        if self.body_lines:
            request.body = "\n".join(self.body_lines)
        self.file.requests.append(request)

    def start_body(self, line: str | None = None) -> None:
        self.in_body = True
        if line is not None:
            self.body_lines.append(line)

    def set_request_line(self, method: str, url: str) -> None:
        request = self.current
        request.method = method
        request.url = url
        request.source_line = self.line_number
        if self.description_lines:
            request.description = " ".join(self.description_lines)
            self.description_lines = []


# ── Line handlers (precedence order) ─────────────────────────────────────


def _handle_separator(state: _ParseState, line: str) -> bool:
    m = _SEPARATOR_RE.match(line)
    if not m:
        return False
    state.flush()
    state.current = Request(name=m.group(1).strip(), source_line=state.line_number)
    state.in_body = False
    state.body_lines = []
    state.description_lines = []
    return True


def _handle_body(state: _ParseState, line: str) -> bool:
    if not state.in_body:
        return False
    state.body_lines.append(line)
    return True


def _handle_comment(state: _ParseState, line: str) -> bool:
    if not line.startswith(_COMMENT_MARKERS):
        return False
    request = state.current
    # Metadata only counts before the request line.
    if request is None or request.method:
        return True

    comment = line.strip()
    for marker in _COMMENT_MARKERS:
        if comment.startswith(marker):
            comment = comment[len(marker) :].strip()
            break
    if not comment:
        return True

    m = _CAPTURE_RE.match(comment)
    if m:
        request.captures.append(CaptureRule(m.group(1), m.group(2).strip()))
    else:
        state.description_lines.append(comment)
    return True


def _handle_variable(state: _ParseState, line: str) -> bool:
    if not line.startswith("@"):
        return False
    m = _VARIABLE_RE.match(line)
    if m:
        key = m.group(1).strip()
        if key:
            state.file.variables[key] = m.group(2).strip()
    return True


def _handle_implicit_start(state: _ParseState, line: str) -> bool:
    """Skip blank lines before the first request; open one on content."""
    if state.current is not None:
        return False
    if not line.strip():
        return True
    state.current = Request()
    return False


def _handle_request_line(state: _ParseState, line: str) -> bool:
    m = _REQUEST_LINE_RE.match(line)
    if not m:
        return False
    state.set_request_line(m.group(1), m.group(2))
    return True


def _handle_version_line(state: _ParseState, line: str) -> bool:
    return bool(_VERSION_LINE_RE.match(line))


def _handle_header(state: _ParseState, line: str) -> bool:
    if ":" not in line or not state.current.method:
        return False

    if line.strip().startswith(_BODY_OPENERS):
        state.start_body(line)
        return True

    name, value = line.split(":", 1)
    name = name.strip()
    if not name or _NON_HEADER_CHARS.intersection(name):
        state.start_body(line)
        return True

    state.current.add_header(name, value.strip())
    return True


def _handle_blank_line(state: _ParseState, line: str) -> bool:
    if line.strip() or not state.current.method:
        return False
    state.start_body()
    return True


def _handle_bare_url(state: _ParseState, line: str) -> bool:
    url = line.strip()
    if not url.startswith(("http://", "https://")):
        return False
    state.set_request_line("GET", url)
    return True


def _handle_fallback(state: _ParseState, line: str) -> bool:
    if not state.current.method:
        return False
    state.start_body(line)
    return True


_LINE_HANDLERS = (
    _handle_separator,
    _handle_body,
    _handle_comment,
    _handle_variable,
    _handle_implicit_start,
    _handle_request_line,
    _handle_version_line,
    _handle_header,
    _handle_blank_line,
    _handle_bare_url,
    _handle_fallback,
)


# ── Public API ───────────────────────────────────────────────────────────


def parse_text(text: str, path: str = "") -> HTTPFile:
    """Parse request-file text.

    Never raises on malformed content: unknown lines before a request line
    are dropped, unknown lines after it become body, and sections without
    both a method and a URL are discarded.
    """
    state = _ParseState(file=HTTPFile(path=path))

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()

    for line_number, line in enumerate(lines, start=1):
        line = line.removesuffix("\r")
        state.line_number = line_number
        for handler in _LINE_HANDLERS:
            if handler(state, line):
                break

    state.flush()
    logger.debug(
        "Parsed %d request(s) and %d variable(s) from %s",
        len(state.file.requests),
        len(state.file.variables),
        path or "<text>",
    )
    return state.file


def parse_file(path: str | Path) -> HTTPFile:
    """Read and parse a request file. Raises OSError if it can't be read."""
    text = Path(path).read_text(encoding="utf-8")
    return parse_text(text, path=str(path))
