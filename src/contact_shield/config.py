"""YAML/dict config loader for contact-shield.

Supports loading from a YAML file or a plain dict (for embedding in a
larger service config).

Example YAML:

    contact_filter:
      enabled: true
      history_size: 10      # messages kept per (channel, sender)
      window_size: 5        # history messages analyzed with each new one
      allow_list:
        - qtalent.live
        - support@qtalent.live
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Iterable

import yaml

from .engine import ContactFilter, FilterConfig
from .types import FilterResult


class _NoopFilter:
    """Pass-through filter when filtering is disabled."""
    def record_for_analysis(self, channel_id: str, sender_id: str,
                            history: Iterable[str]) -> None:
        return None
    def evaluate(self, text: str | None, channel_id: str, sender_id: str,
                 is_sender_restricted_party: bool = False,
                 bypass: bool = False) -> FilterResult:
        return FilterResult.allowed()
    def clear_buffers(self, channel_id: str | None = None,
                      sender_id: str | None = None) -> None:
        return None


def _positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{key} must be a positive integer, got {value!r}")
    return value


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "contact_filter" key or flat
    if "contact_filter" in data:
        data = data["contact_filter"] or {}

    allow_list = data.get("allow_list") or []
    if isinstance(allow_list, str) or not all(isinstance(v, str) for v in allow_list):
        raise ValueError("allow_list must be a list of strings")

    return {
        "enabled": bool(data.get("enabled", True)),
        "history_size": _positive_int(data, "history_size", 10),
        "window_size": _positive_int(data, "window_size", 5),
        "allow_list": set(allow_list),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    with open(Path(path).expanduser()) as f:
        return load_config(yaml.safe_load(f))


def create_filter(config: dict[str, Any] | None = None) -> ContactFilter:
    """Create a fully configured filter from a config dict."""
    # load_config is idempotent, so already-normalized dicts pass through
    cfg = load_config(config)

    if not cfg["enabled"]:
        # Everything is allowed, nothing is buffered
        return _NoopFilter()

    return ContactFilter(FilterConfig(
        history_size=cfg["history_size"],
        window_size=cfg["window_size"],
        allow_list=cfg["allow_list"],
    ))
