"""Tests for the auto-substitution scheduler."""
import pytest

from pitchboard.models import PitchState, SubstitutionEvent
from pitchboard.services import AutoSubScheduler


def event(half, time, out, incoming):
    return SubstitutionEvent(time=time, half=half, player_out=out, player_in=incoming, position="CM")


@pytest.fixture
def scheduler():
    state = PitchState()
    sched = AutoSubScheduler(state)
    sched.set_plan([
        event(2, 0, "gk", "gk2"),
        event(1, 300, "a", "b"),
        event(1, 300, "c", "d"),
        event(1, 600, "b", "a"),
    ])
    return sched


def test_plan_is_sorted_and_active(scheduler):
    assert [e.key for e in scheduler.plan] == [(1, 300), (1, 300), (1, 600), (2, 0)]
    assert scheduler.is_active
    assert not scheduler.is_paused


def test_nothing_due_before_first_key(scheduler):
    assert scheduler.due_batch(1, 299) == []
    assert scheduler.claim_due(1, 299) == []


def test_batch_claimed_once(scheduler):
    batch = scheduler.claim_due(1, 300)
    assert sorted(e.player_out for e in batch) == ["a", "c"]
    assert all(e.executed for e in batch)
    # a second evaluation of the same tick finds nothing
    assert scheduler.claim_due(1, 300) == []
    assert scheduler.next_pending_key() == (1, 600)


def test_late_tick_claims_only_earliest_batch(scheduler):
    assert len(scheduler.claim_due(1, 900)) == 2
    assert len(scheduler.claim_due(1, 900)) == 1
    assert scheduler.claim_due(1, 900) == []
    assert [e.player_out for e in scheduler.claim_due(2, 0)] == ["gk"]
    assert not scheduler.is_active


def test_paused_scheduler_holds_events(scheduler):
    scheduler.pause()
    assert scheduler.claim_due(1, 300) == []
    scheduler.resume()
    assert len(scheduler.claim_due(1, 300)) == 2


def test_skip_next_marks_whole_batch(scheduler):
    skipped = scheduler.skip_next()
    assert len(skipped) == 2
    assert all(e.skipped and not e.executed for e in skipped)
    assert scheduler.due_batch(1, 300) == []
    assert scheduler.next_pending_key() == (1, 600)


def test_mark_skipped_clears_executed_flag(scheduler):
    claimed = scheduler.claim_due(1, 300)
    scheduler.mark_skipped(claimed[0].id)
    stale = next(e for e in scheduler.plan if e.id == claimed[0].id)
    assert stale.skipped and not stale.executed


def test_cancel_and_inactive_plan(scheduler):
    scheduler.cancel()
    assert scheduler.plan == []
    assert not scheduler.is_active

    scheduler.set_plan([event(1, 60, "a", "b")], activate=False)
    assert scheduler.claim_due(1, 60) == []


def test_empty_plan_is_not_active():
    sched = AutoSubScheduler(PitchState())
    sched.set_plan([])
    assert not sched.is_active
