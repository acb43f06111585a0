"""
Service factory for the Pitch Board application.

Builds a fully wired ``MatchSession`` from runtime settings so the hosting
view never constructs collaborators itself.
"""
import logging
from typing import Optional

from ..config import Settings
from .analytics_service import GameReportExporter
from .match_session import MatchSession
from .persistence_service import PersistenceService
from .stats_store import InMemoryStatsStore, RemoteStatsStore, StatsStore
from .tick_loop import TickLoop

logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    Factory for creating service instances with their dependencies injected.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self._persistence_service: Optional[PersistenceService] = None
        self._stats_store: Optional[StatsStore] = None
        self._export_service: Optional[GameReportExporter] = None

    def create_session(self, load: bool = True) -> MatchSession:
        """
        Create a match session, restoring any records left in the store.

        Args:
            load: Restore the clock and pitch records on creation

        Returns:
            Configured MatchSession instance
        """
        session = MatchSession(
            store=self._get_persistence_service(),
            stats_store=self._get_stats_store(),
        )
        if load and session.load():
            logger.info("Restored match in progress")
        return session

    def create_tick_loop(self, session: MatchSession) -> TickLoop:
        return TickLoop(session, interval=self.settings.tick_interval)

    def get_export_service(self) -> GameReportExporter:
        """Get singleton export service."""
        if self._export_service is None:
            self._export_service = GameReportExporter()
        return self._export_service

    def _get_persistence_service(self) -> PersistenceService:
        """Get singleton persistence service."""
        if self._persistence_service is None:
            self._persistence_service = PersistenceService(
                store_dir=self.settings.store_dir,
                session_id=self.settings.session_id,
            )
        return self._persistence_service

    def _get_stats_store(self) -> StatsStore:
        """Remote store when a stats URL is configured, in-memory otherwise."""
        if self._stats_store is None:
            if self.settings.stats_url:
                self._stats_store = RemoteStatsStore(
                    self.settings.stats_url,
                    api_key=self.settings.stats_api_key,
                    timeout=self.settings.stats_timeout,
                )
            else:
                logger.info("No stats URL configured; finished matches are kept in memory")
                self._stats_store = InMemoryStatsStore()
        return self._stats_store

    def configure_custom_stats_store(self, store: StatsStore) -> None:
        self._stats_store = store

    def configure_custom_persistence_service(self, service: PersistenceService) -> None:
        self._persistence_service = service
