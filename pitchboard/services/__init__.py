"""
Services package for the Pitch Board match engine.

This package contains service classes that handle the match logic.
Includes a factory that wires a complete match session.
"""
from .persistence_service import PersistenceService
from .timer_service import GameClock
from .position_validator import PositionValidationService, ValidationResult
from .substitution_planner import SubstitutionPlanner, SubstitutionPlan, SubstitutionProposal
from .game_commands import GameCommandManager, SubstitutionExecutor
from .auto_sub_scheduler import AutoSubScheduler
from .lineup_service import LineupService
from .analytics_service import GameStatsAggregator, GameReportExporter
from .stats_store import InMemoryStatsStore, RemoteStatsStore, StatsStore
from .match_session import FinishResult, MatchSession, SubstitutionResult, TickResult
from .tick_loop import TickLoop
from .service_factory import ServiceFactory

__all__ = [
    "PersistenceService", "GameClock", "PositionValidationService", "ValidationResult",
    "SubstitutionPlanner", "SubstitutionPlan", "SubstitutionProposal",
    "GameCommandManager", "SubstitutionExecutor", "AutoSubScheduler", "LineupService",
    "GameStatsAggregator", "GameReportExporter",
    "InMemoryStatsStore", "RemoteStatsStore", "StatsStore",
    "FinishResult", "MatchSession", "SubstitutionResult", "TickResult",
    "TickLoop", "ServiceFactory",
]
