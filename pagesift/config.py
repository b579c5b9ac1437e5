"""Centralised settings for the pagesift backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in _TRUTHY


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Direct fetch
    # ------------------------------------------------------------------
    direct_fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("DIRECT_FETCH_TIMEOUT", "10.0"))
    )

    # ------------------------------------------------------------------
    # Headless browser
    # ------------------------------------------------------------------
    navigation_timeout: float = field(
        default_factory=lambda: float(os.environ.get("NAVIGATION_TIMEOUT", "60.0"))
    )
    browser_executable_path: Optional[str] = field(
        default_factory=lambda: os.environ.get("BROWSER_EXECUTABLE_PATH") or None
    )
    browser_launch_args: List[str] = field(
        default_factory=lambda: os.environ.get(
            "BROWSER_LAUNCH_ARGS", "--no-sandbox --disable-setuid-sandbox"
        ).split()
    )
    stealth_headless: bool = field(
        default_factory=lambda: _env_bool("STEALTH_HEADLESS", "true")
    )
    plain_headless: bool = field(
        default_factory=lambda: _env_bool("PLAIN_HEADLESS", "true")
    )

    # ------------------------------------------------------------------
    # Adaptive wait (approximate heuristics, not business rules)
    # ------------------------------------------------------------------
    content_wait_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CONTENT_WAIT_TIMEOUT", "25.0"))
    )
    clean_text_threshold: int = field(
        default_factory=lambda: int(os.environ.get("CLEAN_TEXT_THRESHOLD", "200"))
    )
    overlay_text_threshold: int = field(
        default_factory=lambda: int(os.environ.get("OVERLAY_TEXT_THRESHOLD", "1500"))
    )
    scroll_probability: float = field(
        default_factory=lambda: float(os.environ.get("SCROLL_PROBABILITY", "0.3"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    log_format: str = field(
        default_factory=lambda: os.environ.get("LOG_FORMAT", "text")
    )


# Module-level singleton, import this everywhere:
#   from pagesift.config import settings
settings = Settings()
