"""Runtime settings.

Values come from environment variables (optionally seeded from a `.env` file)
and can be overridden per call, e.g. by CLI flags.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

DEFAULT_SLINGSHOT_URL = "https://slingshot.microcosm.blue"
DEFAULT_CONSTELLATION_URL = "https://constellation.microcosm.blue"
DEFAULT_CDN_TEMPLATE = "https://cdn.bsky.app/img/{kind}/plain/{did}/{cid}@jpeg"

# The backlink index serves at most this many records per page.
MAX_PAGE_LIMIT = 100

_ENV_LOADED = False


def load_env_files() -> None:
    """Load the first `.env` found: current dir, then home dir."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    _ENV_LOADED = True
    for env_path in [Path(".env"), Path.home() / ".env", Path.home() / ".blocklens.env"]:
        if env_path.exists():
            load_dotenv(env_path)
            break


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    slingshot_url: str = DEFAULT_SLINGSHOT_URL
    constellation_url: str = DEFAULT_CONSTELLATION_URL
    timeout: int = 30
    page_limit: int = MAX_PAGE_LIMIT
    max_workers: int = 16
    cdn_template: str = DEFAULT_CDN_TEMPLATE
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        # Normalize without rejecting: base URLs lose trailing slashes and
        # numeric knobs are clamped into their usable range.
        object.__setattr__(self, "slingshot_url", self.slingshot_url.rstrip("/"))
        object.__setattr__(self, "constellation_url", self.constellation_url.rstrip("/"))
        object.__setattr__(self, "page_limit", min(max(1, int(self.page_limit)), MAX_PAGE_LIMIT))
        object.__setattr__(self, "max_workers", max(1, int(self.max_workers)))
        object.__setattr__(self, "timeout", max(1, int(self.timeout)))

    @classmethod
    def from_env(cls) -> "Settings":
        load_env_files()
        return cls(
            slingshot_url=_env_str("BLOCKLENS_SLINGSHOT_URL", DEFAULT_SLINGSHOT_URL),
            constellation_url=_env_str("BLOCKLENS_CONSTELLATION_URL", DEFAULT_CONSTELLATION_URL),
            timeout=_env_int("BLOCKLENS_TIMEOUT", 30),
            page_limit=_env_int("BLOCKLENS_PAGE_LIMIT", MAX_PAGE_LIMIT),
            max_workers=_env_int("BLOCKLENS_MAX_WORKERS", 16),
            cdn_template=_env_str("BLOCKLENS_CDN_TEMPLATE", DEFAULT_CDN_TEMPLATE),
            log_level=_env_str("BLOCKLENS_LOG_LEVEL", "WARNING").upper(),
        )

    def replace(self, **overrides: Any) -> "Settings":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
