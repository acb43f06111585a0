"""
Runtime configuration for the Pitch Board application.

Defaults live in :mod:`pitchboard.utils.constants`; anything deployment
specific is read from the environment.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from .utils.constants import DEFAULT_STATS_TIMEOUT_SECONDS, TICK_INTERVAL_SECONDS


@dataclass
class Settings:
    """Environment driven settings for the hosting process."""

    store_dir: str = ".pitchboard"
    session_id: Optional[str] = None
    stats_url: Optional[str] = None
    stats_api_key: Optional[str] = None
    stats_timeout: int = DEFAULT_STATS_TIMEOUT_SECONDS
    tick_interval: float = TICK_INTERVAL_SECONDS
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 7122

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            store_dir=os.getenv("PITCHBOARD_STORE_DIR", ".pitchboard"),
            session_id=os.getenv("PITCHBOARD_SESSION_ID") or None,
            stats_url=os.getenv("PITCHBOARD_STATS_URL") or None,
            stats_api_key=os.getenv("PITCHBOARD_STATS_API_KEY") or None,
            stats_timeout=int(os.getenv("PITCHBOARD_STATS_TIMEOUT", DEFAULT_STATS_TIMEOUT_SECONDS)),
            tick_interval=float(os.getenv("PITCHBOARD_TICK_INTERVAL", TICK_INTERVAL_SECONDS)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("PITCHBOARD_HOST", "127.0.0.1"),
            port=int(os.getenv("PITCHBOARD_PORT", 7122)),
        )


def setup_logging(level: Optional[str] = None) -> None:
    """Install a root handler once, honouring ``LOG_LEVEL``."""

    if logging.getLogger().handlers:
        return
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
