"""
Stats persistence for finished matches.

A save is one summary upsert keyed by match id, followed by deleting the
match's player rows and inserting the fresh ones, so saving the same report
twice leaves the same rows behind. ``RemoteStatsStore`` talks to a
PostgREST-style endpoint with ``requests``; ``InMemoryStatsStore`` offers the
same interface for development and tests.
"""
import logging
from typing import Any, Dict, List, Optional, Protocol

import requests

from ..errors import RemoteSaveFailure
from ..models import GameReport
from ..utils.constants import (
    DEFAULT_STATS_TIMEOUT_SECONDS,
    GAME_PLAYER_STATS_TABLE,
    GAME_SUMMARIES_TABLE,
)

logger = logging.getLogger(__name__)


class StatsStore(Protocol):
    """Interface of the stats persistence collaborator."""

    def save_report(self, report: GameReport) -> None:
        """Persist the report; raises RemoteSaveFailure on any fault."""
        ...


class InMemoryStatsStore:
    """Dict backed stats store with the same upsert/replace semantics."""

    def __init__(self):
        self.summaries: Dict[str, Dict[str, Any]] = {}
        self.player_rows: Dict[str, List[Dict[str, Any]]] = {}
        self.save_count = 0

    def save_report(self, report: GameReport) -> None:
        summary = report.summary.to_row()
        self.summaries[summary["event_id"]] = summary
        self.player_rows[summary["event_id"]] = report.player_rows()
        self.save_count += 1

    def rows_for(self, match_id: str) -> List[Dict[str, Any]]:
        return list(self.player_rows.get(match_id, []))


class RemoteStatsStore:
    """Stats store backed by a PostgREST-style REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: int = DEFAULT_STATS_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or self._session()

    def _session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        if self.api_key:
            session.headers.update({
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.api_key}",
            })
        return session

    def save_report(self, report: GameReport) -> None:
        """
        Upsert the summary, then replace the match's player rows.

        One attempt per step, no retry.

        Raises:
            RemoteSaveFailure: On a transport error or non-2xx response
        """
        match_id = report.summary.match_id
        self._request(
            "summary",
            "POST",
            GAME_SUMMARIES_TABLE,
            params={"on_conflict": "event_id"},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            json=report.summary.to_row(),
        )
        self._request(
            "delete_player_stats",
            "DELETE",
            GAME_PLAYER_STATS_TABLE,
            params={"event_id": f"eq.{match_id}"},
        )
        rows = report.player_rows()
        if rows:
            self._request(
                "insert_player_stats",
                "POST",
                GAME_PLAYER_STATS_TABLE,
                headers={"Prefer": "return=minimal"},
                json=rows,
            )
        logger.info("Saved stats for match %s (%d player rows)", match_id, len(rows))

    def _request(self, step: str, method: str, table: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = getattr(e.response, "status_code", None)
            logger.error("Stats %s failed with HTTP %s", step, status)
            raise RemoteSaveFailure(step, f"Failed to save {step.replace('_', ' ')}: {e}", status) from e
        except requests.RequestException as e:
            logger.error("Stats %s failed: %s", step, e)
            raise RemoteSaveFailure(step, f"Failed to save {step.replace('_', ' ')}: {e}") from e
        return response
