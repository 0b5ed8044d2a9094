"""hrun core - config loading, environment, variable layering, substitution."""

import dataclasses
import logging
import os
import re
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path

import yaml
from dotenv import dotenv_values

from hrun.models import Request

logger = logging.getLogger(__name__)

GLOBAL_DIR = Path.home() / ".hrun"
GLOBAL_CONFIG = GLOBAL_DIR / "config.yaml"

CWD_CONFIG_CANDIDATES = [
    ".hrun.yaml",
    ".hrun.yml",
    "hrun.yaml",
    "hrun.yml",
]

DEFAULT_TIMEOUT = 30

_PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")


# ── Config ───────────────────────────────────────────────────────────────


def resolve_path(
    candidates: list[Path],
    default: Path | None = None,
) -> Path | None:
    """Return the first existing path from candidates, else default."""
    for p in candidates:
        if p.exists():
            return p.resolve()
    return default


def resolve_config_path(config_file: str | None) -> Path | None:
    """Find the config file to use.

    Resolution order:
      1. Explicit -c flag (no fallthrough if missing)
      2. .hrun.yaml (variants) in CWD
      3. ~/.hrun/config.yaml
    """
    if config_file:
        return resolve_path([Path(config_file)])
    return resolve_path([Path(c) for c in CWD_CONFIG_CANDIDATES] + [GLOBAL_CONFIG])


def load_config(config_path: str | Path | None) -> dict:
    """Load YAML config file. Returns empty defaults if not found.

    Stores '_config_dir' in the returned dict so relative paths in the
    config (env_file) resolve against the config file's directory.
    """
    if config_path is None:
        return {"defaults": {}, "_config_dir": None}
    path = Path(config_path)
    if not path.exists():
        return {"defaults": {}, "_config_dir": None}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    logger.debug("Loaded config from %s", path)
    return {
        "defaults": data.get("defaults") or {},
        "_config_dir": path.resolve().parent,
    }


def load_env(env_file: str | None, base_dir: str | Path = ".") -> dict[str, str]:
    """Load .env file and merge with os.environ.

    Values from the .env file win over the process environment.
    """
    env = dict(os.environ)
    if env_file:
        dotenv_path = Path(base_dir) / env_file
        if dotenv_path.exists():
            dotenv_vars = dotenv_values(str(dotenv_path))
            env.update({k: v for k, v in dotenv_vars.items() if v is not None})
            logger.debug("Loaded %d value(s) from %s", len(dotenv_vars), dotenv_path)
    return env


# ── Variables ────────────────────────────────────────────────────────────


def apply_env_overrides(
    variables: MutableMapping[str, str],
    env: Mapping[str, str],
) -> None:
    """Replace file defaults with same-named, non-empty environment values."""
    for key in list(variables):
        value = env.get(key)
        if value:
            variables[key] = value


def layer_variables(
    base: Mapping[str, str],
    *layers: Mapping[str, str] | None,
) -> dict[str, str]:
    """Merge variable maps into a new dict. Later layers win."""
    merged = dict(base)
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def parse_var_args(specs: Iterable[str]) -> dict[str, str]:
    """Parse -v key=value pairs."""
    variables = {}
    for spec in specs:
        if "=" in spec:
            k, val = spec.split("=", 1)
            variables[k.strip()] = val.strip()
    return variables


# ── Substitution ─────────────────────────────────────────────────────────


def substitute(text: str, variables: Mapping[str, str]) -> str:
    """Replace {{name}} placeholders with values from variables.

    The raw text between the braces is the lookup key. Unknown names are
    left as-is, and substituted values are not expanded again.
    """
    if not text or not variables:
        return text

    def _replace(m: re.Match) -> str:
        key = m.group(1)
        if key in variables:
            return str(variables[key])
        return m.group(0)

    return _PLACEHOLDER_RE.sub(_replace, text)


def resolve_request(request: Request, variables: Mapping[str, str]) -> Request:
    """Return a copy of request with url, body and header values substituted.

    The parsed request is left untouched so it can be resolved again later
    against a different set of variables.
    """
    return dataclasses.replace(
        request,
        url=substitute(request.url, variables),
        body=substitute(request.body, variables),
        headers={
            name: [substitute(v, variables) for v in values]
            for name, values in request.headers.items()
        },
        captures=list(request.captures),
    )
