import pytest
import requests

from pitchboard.errors import RemoteSaveFailure
from pitchboard.models import GameReport, GameSummary, PlayerStat
from pitchboard.services import InMemoryStatsStore, RemoteStatsStore


class FakeSession:
    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, timeout, kwargs))
        if not self._responses:
            raise AssertionError("No more responses configured")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeJSONResponse:
    def __init__(self, status_code, payload=None, url="http://stats.test/rest/v1"):
        self.status_code = status_code
        self.reason = "OK" if status_code < 400 else "Error"
        self._payload = payload
        self.url = url

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(
                f"{self.status_code} Server Error: {self.reason}",
                response=self,
            )

    def json(self):
        return self._payload


def make_report(players=True):
    summary = GameSummary(
        match_id="match-1", team_id="team-1", total_game_time=2400, half_duration=1200,
        formation_used="2-3-1", team_size="7", total_substitutions=3,
    )
    rows = []
    if players:
        rows = [
            PlayerStat("match-1", "team-1", "u1", None, 7, ["CM"], 1, True, 1, 1800, "Ann"),
            PlayerStat("match-1", "team-1", None, "Guest", None, ["ST"], 1, False, 0, 600, "Guest"),
        ]
    return GameReport(summary=summary, players=rows)


def test_remote_save_upserts_summary_then_replaces_player_rows():
    session = FakeSession([FakeJSONResponse(201), FakeJSONResponse(204), FakeJSONResponse(201)])
    store = RemoteStatsStore("http://stats.test/rest/v1/", api_key="secret", timeout=5, session=session)

    store.save_report(make_report())

    assert [(c[0], c[1]) for c in session.calls] == [
        ("POST", "http://stats.test/rest/v1/game_summaries"),
        ("DELETE", "http://stats.test/rest/v1/game_player_stats"),
        ("POST", "http://stats.test/rest/v1/game_player_stats"),
    ]
    summary_call, delete_call, insert_call = session.calls
    assert summary_call[2] == 5
    assert summary_call[3]["params"] == {"on_conflict": "event_id"}
    assert "merge-duplicates" in summary_call[3]["headers"]["Prefer"]
    assert summary_call[3]["json"]["event_id"] == "match-1"
    assert delete_call[3]["params"] == {"event_id": "eq.match-1"}
    inserted = insert_call[3]["json"]
    assert [r["user_id"] for r in inserted] == ["u1", None]
    assert inserted[1]["fill_in_player_name"] == "Guest"
    assert "player_name" not in inserted[0]


def test_remote_save_without_players_skips_insert():
    session = FakeSession([FakeJSONResponse(201), FakeJSONResponse(204)])
    RemoteStatsStore("http://stats.test", session=session).save_report(make_report(players=False))
    assert len(session.calls) == 2


def test_http_error_names_failing_step():
    session = FakeSession([FakeJSONResponse(201), FakeJSONResponse(500)])
    store = RemoteStatsStore("http://stats.test", session=session)

    with pytest.raises(RemoteSaveFailure) as excinfo:
        store.save_report(make_report())

    assert excinfo.value.step == "delete_player_stats"
    assert excinfo.value.status_code == 500
    assert len(session.calls) == 2


def test_transport_error_becomes_remote_save_failure():
    session = FakeSession([requests.ConnectionError("offline")])
    store = RemoteStatsStore("http://stats.test", session=session)

    with pytest.raises(RemoteSaveFailure) as excinfo:
        store.save_report(make_report())

    assert excinfo.value.step == "summary"
    assert excinfo.value.status_code is None
    assert "offline" in str(excinfo.value)


def test_default_session_carries_api_key():
    store = RemoteStatsStore("http://stats.test", api_key="secret")
    assert store.session.headers["apikey"] == "secret"
    assert store.session.headers["Authorization"] == "Bearer secret"


def test_in_memory_store_replaces_rows_on_resave():
    store = InMemoryStatsStore()
    store.save_report(make_report())
    store.save_report(make_report())

    assert store.save_count == 2
    assert len(store.rows_for("match-1")) == 2
    assert store.summaries["match-1"]["total_substitutions"] == 3
