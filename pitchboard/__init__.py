"""
Pitch Board

Sideline match engine for youth and amateur football: a two-half match
clock, a position-aware pitch with guided substitutions and swaps, an
auto-substitution plan that evens out playing time, and end-of-game stats.

This package provides a Flask web interface over a single match session.
"""
import logging

from .models import Player, PitchState, GameClockState
from .services import GameClock, MatchSession, PersistenceService, ServiceFactory
from .ui import create_app, run_web_app
from .utils import fmt_mmss, now_ms, APP_TITLE

__version__ = "1.0.0"

# connection pool chatter drowns out match logs
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("requests").setLevel(logging.WARNING)

__all__ = [
    "Player", "PitchState", "GameClockState", "GameClock", "MatchSession",
    "PersistenceService", "ServiceFactory", "create_app", "run_web_app",
    "fmt_mmss", "now_ms", "APP_TITLE"
]
