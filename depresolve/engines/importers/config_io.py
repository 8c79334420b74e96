"""Readers for foreign configuration files (YAML and JSON)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
import yaml

from depresolve.core.errors import ConfigLoadError

log = structlog.get_logger("depresolve.importers")

# Guard against pathological files; real configs are a few KB.
MAX_CONFIG_SIZE = 10 * 1024 * 1024


def _read_text(p: Path) -> str:
    try:
        size = p.stat().st_size
        if size > MAX_CONFIG_SIZE:
            raise ConfigLoadError(f"{p} is too large ({size} bytes)")
        return p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"unable to read {p}: {exc}") from exc


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Parse a YAML mapping; an empty file yields an empty dict."""
    p = Path(path)
    log.debug("config.loading", path=str(p))
    try:
        result = yaml.safe_load(_read_text(p))
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"unable to parse {p}: {exc}") from exc
    if result is None:
        return {}
    if not isinstance(result, dict):
        raise ConfigLoadError(f"unable to parse {p}: expected a mapping, got {type(result).__name__}")
    return result


def load_json(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    log.debug("config.loading", path=str(p))
    try:
        result = json.loads(_read_text(p))
    except json.JSONDecodeError as exc:
        raise ConfigLoadError(f"unable to parse {p}: {exc}") from exc
    if not isinstance(result, dict):
        raise ConfigLoadError(f"unable to parse {p}: expected an object, got {type(result).__name__}")
    return result
