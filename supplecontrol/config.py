"""TOML configuration loader for SuppleControl."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .advisor.request import MAX_ADVISORY_ITEMS

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_DB_PATH = "~/.config/supplecontrol/inventory.db"
DEFAULT_STORAGE_KEY = "supplecontrol_inventory"


@dataclass
class StorageConfig:
    path: str = DEFAULT_DB_PATH
    key: str = DEFAULT_STORAGE_KEY


@dataclass
class GeminiAdvisorConfig:
    api_key: str = ""
    model: str = "gemini-2.5-flash"


@dataclass
class ClaudeAdvisorConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 4096


@dataclass
class AdvisorConfig:
    backend: str = "gemini"
    max_items: int = MAX_ADVISORY_ITEMS
    gemini: GeminiAdvisorConfig = field(default_factory=GeminiAdvisorConfig)
    claude: ClaudeAdvisorConfig = field(default_factory=ClaudeAdvisorConfig)


@dataclass
class AppConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    advisor: AdvisorConfig = field(default_factory=AdvisorConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys missing from the file are read from the environment:
    ``GEMINI_API_KEY`` / ``ANTHROPIC_API_KEY``, then the shared ``API_KEY``.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    sto = raw.get("storage", {})
    adv = raw.get("advisor", {})
    gemini_cfg = adv.get("gemini", {})
    claude_cfg = adv.get("claude", {})

    shared_key = os.environ.get("API_KEY", "")
    gemini_api_key = (
        gemini_cfg.get("api_key", "")
        or os.environ.get("GEMINI_API_KEY", "")
        or shared_key
    )
    claude_api_key = (
        claude_cfg.get("api_key", "")
        or os.environ.get("ANTHROPIC_API_KEY", "")
        or shared_key
    )

    return AppConfig(
        storage=StorageConfig(
            path=sto.get("path", DEFAULT_DB_PATH),
            key=sto.get("key", DEFAULT_STORAGE_KEY),
        ),
        advisor=AdvisorConfig(
            backend=adv.get("backend", "gemini"),
            max_items=_max_items(adv.get("max_items", MAX_ADVISORY_ITEMS)),
            gemini=GeminiAdvisorConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.5-flash"),
            ),
            claude=ClaudeAdvisorConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
                max_tokens=claude_cfg.get("max_tokens", 4096),
            ),
        ),
    )


def _max_items(value: object) -> int:
    """Validate ``[advisor] max_items`` and clamp it to 1..MAX_ADVISORY_ITEMS."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"advisor.max_items must be an integer: {value!r}")
    return max(1, min(value, MAX_ADVISORY_ITEMS))
