"""
Web application module for the Pitch Board match engine.

This module contains the Flask web server that exposes the match session
to a browser front end as JSON API endpoints.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from ..config import Settings, setup_logging
from ..errors import InvalidSubstitution, NoValidSwap
from ..models import FORMATIONS, GameReport
from ..services import MatchSession, ServiceFactory, TickLoop
from ..utils import APP_TITLE, HALF_LENGTH_OPTIONS

logger = logging.getLogger(__name__)


class WebAppState:
    """
    State holder for the web application.

    Owns the match session, its tick loop and the report of the last
    finished match. Collaborators come from the service factory.
    """

    def __init__(self, factory: Optional[ServiceFactory] = None, session: Optional[MatchSession] = None):
        self.service_factory = factory or ServiceFactory()
        self.session = session or self.service_factory.create_session()
        self.exporter = self.service_factory.get_export_service()
        self.tick_loop: TickLoop = self.service_factory.create_tick_loop(self.session)
        self.last_report: Optional[GameReport] = None


def _body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _error(message: str, status: int, **extra) -> Tuple[Response, int]:
    return jsonify({"success": False, "error": message, **extra}), status


def create_app(app_state: Optional[WebAppState] = None, start_ticker: bool = False) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        app_state: Pre-built state, mainly for tests
        start_ticker: Start the background tick loop

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app_state = app_state or WebAppState()
    app.config["APP_STATE"] = app_state
    session = app_state.session

    if start_ticker:
        app_state.tick_loop.start()

    @app.errorhandler(NoValidSwap)
    def handle_no_valid_swap(e: NoValidSwap):
        return _error(str(e), 409, details=e.to_dict())

    @app.errorhandler(InvalidSubstitution)
    def handle_invalid_substitution(e: InvalidSubstitution):
        return _error(str(e), 400)

    @app.errorhandler(ValueError)
    def handle_value_error(e: ValueError):
        return _error(str(e), 400)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error on %s", request.path)
        return _error(str(e), 500)

    @app.route("/")
    def index():
        return jsonify({"success": True, "app": APP_TITLE})

    # ==================== State / Clock ==================== #

    @app.route("/api/state", methods=["GET"])
    def get_state():
        return jsonify({"success": True, "state": session.snapshot()})

    @app.route("/api/timer/tick", methods=["POST"])
    def tick():
        result = session.tick()
        return jsonify({"success": True, "tick": result.to_dict()})

    @app.route("/api/timer/toggle", methods=["POST"])
    def toggle_timer():
        reading = session.toggle_clock()
        return jsonify({"success": True, "clock": reading.to_dict()})

    @app.route("/api/timer/second-half", methods=["POST"])
    def start_second_half():
        reading = session.start_second_half()
        return jsonify({"success": True, "message": "Second half started", "clock": reading.to_dict()})

    @app.route("/api/timer/configure", methods=["POST"])
    def configure_timer():
        data = _body()
        session.configure(
            minutes_per_half=data.get("minutes_per_half"),
            team_id=data.get("team_id"),
            team_name=data.get("team_name"),
            team_size=data.get("team_size"),
            match_id=data.get("match_id"),
        )
        return jsonify({"success": True, "message": "Match configured", "clock": session.read_clock().to_dict()})

    @app.route("/api/timer/options", methods=["GET"])
    def timer_options():
        return jsonify({"success": True, "half_lengths": list(HALF_LENGTH_OPTIONS)})

    @app.route("/api/timer/sound", methods=["POST"])
    def set_sound():
        enabled = bool(_body().get("enabled", True))
        session.set_sound(enabled)
        return jsonify({"success": True, "sound_enabled": enabled})

    @app.route("/api/timer/dismiss", methods=["POST"])
    def dismiss_timer():
        session.dismiss()
        return jsonify({"success": True, "message": "Match cleared"})

    # ==================== Roster / Lineup ==================== #

    @app.route("/api/roster", methods=["POST"])
    def update_roster():
        players = _body().get("players")
        if not isinstance(players, list):
            return _error("players must be a list", 400)
        roster = session.set_roster(players)
        return jsonify({"success": True, "message": f"Roster updated with {len(roster)} players"})

    @app.route("/api/fill-ins", methods=["POST"])
    def add_fill_in():
        data = _body()
        player = session.add_fill_in(
            data.get("name", ""),
            number=data.get("number"),
            eligible_positions=data.get("eligible_positions"),
        )
        return jsonify({"success": True, "player": player.to_dict()}), 201

    @app.route("/api/players/<player_id>/injury", methods=["POST"])
    def set_injury(player_id: str):
        if session.pitch.get_player(player_id) is None:
            return _error("Player not found", 404)
        player = session.set_injured(player_id, bool(_body().get("injured", True)))
        return jsonify({"success": True, "player": player.to_dict()})

    @app.route("/api/formations", methods=["GET"])
    def get_formations():
        team_size = request.args.get("team_size", session.pitch.team_size)
        if team_size not in FORMATIONS:
            return _error(f"Unsupported team size: {team_size}", 400)
        return jsonify({
            "success": True,
            "formations": [f.to_dict() for f in FORMATIONS[team_size]],
        })

    @app.route("/api/formation", methods=["POST"])
    def select_formation():
        data = _body()
        assignment = session.select_formation(data.get("name"), auto_place=bool(data.get("auto_place", True)))
        return jsonify({"success": True, "formation": session.pitch.formation_name, "assignment": assignment})

    @app.route("/api/lineup/auto-place", methods=["POST"])
    def auto_place():
        assignment = session.auto_place()
        return jsonify({"success": True, "assignment": assignment})

    @app.route("/api/lineup/place", methods=["POST"])
    def place_player():
        data = _body()
        player_id = data.get("player_id")
        if not player_id:
            return _error("player_id required", 400)
        if session.pitch.get_player(player_id) is None:
            return _error("Player not found", 404)
        result = session.place_player(player_id, data.get("position"))
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/lineup/validate", methods=["GET"])
    def validate_lineup():
        return jsonify({"success": True, "validation": session.check_placement().to_dict()})

    # ==================== Substitutions ==================== #

    @app.route("/api/substitution/preview", methods=["POST"])
    def preview_substitution():
        data = _body()
        if not data.get("bench_player_id") or not data.get("position"):
            return _error("Both bench_player_id and position required", 400)
        proposal = session.preview_substitution(
            data["bench_player_id"], data["position"], force_swap=bool(data.get("force_swap", False))
        )
        return jsonify({"success": True, "proposal": proposal.to_dict()})

    @app.route("/api/substitution/options/<player_id>", methods=["GET"])
    def substitution_options(player_id: str):
        if session.pitch.get_player(player_id) is None:
            return _error("Player not found", 404)
        options = session.substitution_options(player_id)
        return jsonify({"success": True, "options": [o.to_dict() for o in options]})

    @app.route("/api/substitution", methods=["POST"])
    def make_substitution():
        data = _body()
        if not data.get("bench_player_id") or not data.get("position"):
            return _error("Both bench_player_id and position required", 400)
        result = session.confirm_substitution(
            data["bench_player_id"],
            data["position"],
            swap_player_id=data.get("swap_player_id"),
            accept_mismatch=bool(data.get("accept_mismatch", False)),
        )
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/swap", methods=["POST"])
    def swap_positions():
        data = _body()
        if not data.get("player_a") or not data.get("player_b"):
            return _error("Both player_a and player_b required", 400)
        result = session.swap_positions(data["player_a"], data["player_b"])
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/undo", methods=["POST"])
    def undo_action():
        description = session.undo()
        if description is None:
            return jsonify({"success": False, "message": "Nothing to undo"}), 400
        return jsonify({"success": True, "message": f"Undone: {description}"})

    @app.route("/api/redo", methods=["POST"])
    def redo_action():
        description = session.redo()
        if description is None:
            return jsonify({"success": False, "message": "Nothing to redo"}), 400
        return jsonify({"success": True, "message": f"Redone: {description}"})

    @app.route("/api/command-history", methods=["GET"])
    def get_command_history():
        return jsonify({
            "success": True,
            "history": session.commands.get_command_history(),
            "can_undo": session.commands.can_undo(),
            "can_redo": session.commands.can_redo(),
        })

    # ==================== Auto-sub plan ==================== #

    def _plan_response():
        return jsonify({
            "success": True,
            "plan": [e.to_dict() for e in session.scheduler.plan],
            "active": session.scheduler.is_active,
            "paused": session.scheduler.is_paused,
        })

    @app.route("/api/auto-subs", methods=["GET"])
    def get_auto_subs():
        return _plan_response()

    @app.route("/api/auto-subs/generate", methods=["POST"])
    def generate_auto_subs():
        data = _body()
        session.generate_auto_sub_plan(
            rotation_speed=int(data.get("rotation_speed", 2)),
            allow_swaps=bool(data.get("allow_swaps", True)),
            allow_batch=bool(data.get("allow_batch", True)),
            activate=bool(data.get("activate", True)),
        )
        return _plan_response()

    @app.route("/api/auto-subs", methods=["PUT"])
    def set_auto_subs():
        data = _body()
        events = data.get("events")
        if not isinstance(events, list):
            return _error("events must be a list", 400)
        session.set_auto_sub_plan(events, activate=bool(data.get("activate", True)))
        return _plan_response()

    @app.route("/api/auto-subs/pause", methods=["POST"])
    def pause_auto_subs():
        session.pause_auto_subs()
        return _plan_response()

    @app.route("/api/auto-subs/resume", methods=["POST"])
    def resume_auto_subs():
        session.resume_auto_subs()
        return _plan_response()

    @app.route("/api/auto-subs/skip", methods=["POST"])
    def skip_auto_sub():
        session.skip_next_auto_sub(recalculate=bool(_body().get("recalculate", False)))
        return _plan_response()

    @app.route("/api/auto-subs", methods=["DELETE"])
    def cancel_auto_subs():
        session.cancel_auto_subs()
        return _plan_response()

    # ==================== Goals ==================== #

    @app.route("/api/goals", methods=["POST"])
    def add_goal():
        data = _body()
        goal = session.add_goal(data.get("scorer_id"), bool(data.get("is_opponent_goal", False)))
        return jsonify({"success": True, "goal": goal.to_dict(), "score": session.score()}), 201

    @app.route("/api/goals/<goal_id>", methods=["DELETE"])
    def remove_goal(goal_id: str):
        if not session.remove_goal(goal_id):
            return _error("Goal not found", 404)
        return jsonify({"success": True, "score": session.score()})

    # ==================== Finish / Analytics ==================== #

    @app.route("/api/finish", methods=["POST"])
    def finish_game():
        result = session.finish_game(_body().get("match_id"))
        app_state.last_report = result.report
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/analytics/report", methods=["GET"])
    def get_analytics_report():
        report = session.preview_report()
        return jsonify({"success": True, "report": report.to_dict()})

    @app.route("/api/analytics/export", methods=["GET"])
    def export_analytics_report():
        """Export the last finished match, or the live match, as CSV."""
        report = app_state.last_report or session.preview_report()
        csv_content = app_state.exporter.export_to_csv(report)
        filename = f"game_report_{report.summary.match_id or 'live'}.csv"
        return Response(
            csv_content,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    return app


def run_web_app(settings: Optional[Settings] = None) -> None:
    """
    Run the web application with the background tick loop.

    Args:
        settings: Runtime settings; read from the environment when omitted
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)
    app_state = WebAppState(ServiceFactory(settings))
    app = create_app(app_state, start_ticker=True)
    try:
        app.run(host=settings.host, port=settings.port, debug=False)
    finally:
        app_state.tick_loop.stop(timeout=2)


if __name__ == "__main__":
    run_web_app()
