"""End-of-game statistics for the Pitch Board match engine."""

from __future__ import annotations

import csv
import io
from collections import Counter
from typing import Dict, List, Optional, Set

from ..models import GameReport, GameSummary, PitchState, PlayerStat
from ..utils import fmt_mmss


class GameStatsAggregator:
    """
    Derives the summary and per-player rows of a finished match.

    Everything is computed from the event log and the kickoff placements in
    one pass, never incrementally, so running it twice over the same state
    gives identical rows.
    """

    def aggregate(
        self,
        state: PitchState,
        match_id: str,
        total_game_time: int,
        half_duration: int,
        team_id: Optional[str] = None,
    ) -> GameReport:
        """
        Build the game report.

        Args:
            state: Pitch state with closed playing-time intervals
            match_id: Identifier the rows are saved against
            total_game_time: Seconds played across both halves
            half_duration: Configured half length in seconds
            team_id: Team identifier; defaults to the pitch state's team

        Returns:
            GameReport with one summary and one row per roster player
        """
        team_id = team_id if team_id is not None else state.team_id
        kickoff = state.kickoff_positions or {}
        executed = [e for e in state.executed_subs if e.executed]

        positions: Dict[str, Set[str]] = {p.id: set() for p in state.players}
        sub_counts: Counter = Counter()

        for player_id, position in kickoff.items():
            if position and player_id in positions:
                positions[player_id].add(position)

        for event in executed:
            swap = event.position_swap
            self._add(positions, event.player_out, event.position)
            self._add(positions, event.player_in, swap.from_position if swap else event.position)
            if swap is not None:
                self._add(positions, swap.player, swap.from_position)
                self._add(positions, swap.player, swap.to_position)
            for player_id in set(event.participants()):
                sub_counts[player_id] += 1

        for record in state.position_swaps:
            self._add(positions, record.player_a, record.a_from)
            self._add(positions, record.player_a, record.b_from)
            self._add(positions, record.player_b, record.b_from)
            self._add(positions, record.player_b, record.a_from)

        goals = Counter(
            g.scorer_id for g in state.goals if not g.is_opponent_goal and g.scorer_id
        )

        players = [
            PlayerStat(
                match_id=match_id,
                team_id=team_id,
                player_id=None if p.is_fill_in else p.id,
                fill_in_player_name=p.name if p.is_fill_in else None,
                jersey_number=p.number,
                positions_played=sorted(positions[p.id]),
                substitutions_count=sub_counts[p.id],
                started_on_pitch=kickoff.get(p.id) is not None,
                goals_scored=goals[p.id],
                minutes_played=int(p.minutes_played),
                player_name=p.name,
            )
            for p in state.players
        ]

        summary = GameSummary(
            match_id=match_id,
            team_id=team_id,
            total_game_time=int(total_game_time),
            half_duration=int(half_duration),
            formation_used=state.formation_name,
            team_size=state.team_size,
            total_substitutions=len(executed),
        )
        return GameReport(summary=summary, players=players)

    @staticmethod
    def _add(positions: Dict[str, Set[str]], player_id: Optional[str], position: Optional[str]) -> None:
        if player_id in positions and position:
            positions[player_id].add(position)


class GameReportExporter:
    """CSV export of the per-player rows."""

    def export_to_csv(self, report: GameReport) -> str:
        """Export game report to CSV format."""
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(
            [
                "Name",
                "Number",
                "Fill-in",
                "Started",
                "Minutes",
                "Positions",
                "Substitutions",
                "Goals",
            ]
        )

        for stat in report.players:
            writer.writerow(
                [
                    stat.display_name,
                    "" if stat.jersey_number is None else stat.jersey_number,
                    "yes" if stat.fill_in_player_name else "no",
                    "yes" if stat.started_on_pitch else "no",
                    fmt_mmss(stat.minutes_played),
                    " ".join(stat.positions_played),
                    stat.substitutions_count,
                    stat.goals_scored,
                ]
            )

        csv_text = buffer.getvalue()
        buffer.close()
        return csv_text
