import logging
import threading

from flask import Flask, jsonify, request
from werkzeug.exceptions import BadRequest, Conflict, HTTPException, NotFound

import config
import db
import games_config
from device_signals import read_device_signals
from game_session import LevelSession, Phase, SessionStateError, Ticker
from launch_gate import LaunchGate
from ledger import ScoreLedger
from models import GateDecision, GameId, RewardId

logger = logging.getLogger(__name__)


def default_ledger():
    if not config.persist:
        return ScoreLedger()
    db.init_db()
    return ScoreLedger(store=db)


def default_gate():
    return LaunchGate(read_device_signals, config.probe_url)


def get_payload():
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BadRequest("Expected a JSON object.")
    return payload


def parse_game_id(value):
    try:
        return GameId(value)
    except ValueError:
        raise NotFound(f"Unknown game: {value}")


def parse_int(payload, key, minimum=0):
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise BadRequest(f"'{key}' must be an integer >= {minimum}.")
    return value


def create_app(ledger=None, gate=None):
    """Build the MindCascade API around an injected ledger and launch gate."""
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = config.secret_key

    ledger = ledger if ledger is not None else default_ledger()
    gate = gate if gate is not None else default_gate()
    sessions = {}
    sessions_lock = threading.Lock()
    app.extensions["mindcascade"] = {"ledger": ledger, "gate": gate, "sessions": sessions}

    @app.before_request
    def start_launch_gate():
        gate.start()

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"ok": False, "error": e.description}), e.code

    @app.errorhandler(SessionStateError)
    def session_state_error(e):
        return http_error(Conflict(str(e)))

    @app.get("/api/launch")
    def api_launch():
        if not gate.resolved:
            return jsonify({"resolved": False, "screen": "loading"})

        decision = gate.decision
        body = {"resolved": True, "decision": decision.value}
        if decision == GateDecision.NORMAL:
            body["screen"] = "main" if ledger.has_completed_onboarding else "onboarding"
        else:
            body["screen"] = "remote"
            body["remote_url"] = gate.probe_url
        return jsonify(body)

    @app.get("/api/games")
    def api_games():
        return jsonify(games_config.catalog())

    @app.get("/api/onboarding")
    def api_onboarding():
        return jsonify({"completed": ledger.has_completed_onboarding})

    @app.post("/api/onboarding/complete")
    def api_onboarding_complete():
        ledger.set_onboarding_completed()
        return jsonify({"ok": True, "completed": True})

    @app.post("/api/score")
    def api_score():
        payload = get_payload()
        game_id = parse_game_id(payload.get("game"))
        points = parse_int(payload, "points")
        ledger.record_score(game_id, points)
        return jsonify({"ok": True, "average": ledger.average_score(game_id)})

    @app.post("/api/reward")
    def api_reward():
        payload = get_payload()
        try:
            reward_id = RewardId(payload.get("reward"))
        except ValueError:
            raise BadRequest(f"Unknown reward: {payload.get('reward')}")
        ledger.grant_reward(reward_id)
        return jsonify({"ok": True})

    @app.post("/api/games/<game_id>/levels")
    def api_level_complete(game_id):
        game_id = parse_game_id(game_id)
        level = parse_int(get_payload(), "level", minimum=1)
        try:
            points = games_config.level_score(game_id, level)
        except ValueError as e:
            raise BadRequest(str(e))
        reward_id = games_config.get_game(game_id)["reward"]
        ledger.record_score(game_id, points)
        ledger.grant_reward(reward_id)
        return jsonify({"ok": True, "points": points, "reward": reward_id.value})

    @app.get("/api/stats")
    def api_stats():
        return jsonify(ledger.snapshot())

    @app.post("/api/stats/reset")
    def api_stats_reset():
        if get_payload().get("confirm") is not True:
            raise BadRequest("Reset needs {\"confirm\": true}.")
        ledger.reset_progress()
        return jsonify({"ok": True})

    def get_session(session_id):
        with sessions_lock:
            entry = sessions.get(session_id)
        if entry is None:
            raise NotFound(f"Unknown session: {session_id}")
        return entry

    @app.post("/api/games/<game_id>/sessions")
    def api_session_start(game_id):
        session = LevelSession(parse_game_id(game_id), ledger)
        with sessions_lock:
            sessions[session.session_id] = (session, Ticker(session))
        logger.info("Started %s session %s", session.game_id.value, session.session_id)
        return jsonify(session.to_dict()), 201

    @app.get("/api/sessions/<session_id>")
    def api_session(session_id):
        session, _ = get_session(session_id)
        return jsonify(session.to_dict())

    @app.post("/api/sessions/<session_id>/begin")
    def api_session_begin(session_id):
        session, ticker = get_session(session_id)
        session.begin()
        ticker.arm()
        return jsonify(session.to_dict())

    @app.post("/api/sessions/<session_id>/answer")
    def api_session_answer(session_id):
        session, ticker = get_session(session_id)
        correct = get_payload().get("correct")
        if not isinstance(correct, bool):
            raise BadRequest("'correct' must be true or false.")
        session.answer(correct)
        ticker.arm()
        return jsonify(session.to_dict())

    @app.post("/api/sessions/<session_id>/continue")
    def api_session_continue(session_id):
        session, ticker = get_session(session_id)
        session.continue_()
        if session.phase == Phase.COMPLETE:
            ticker.cancel()
            with sessions_lock:
                sessions.pop(session_id, None)
            logger.info("Session %s complete, score %d", session_id, session.total_score)
        else:
            ticker.arm()
        return jsonify(session.to_dict())

    @app.delete("/api/sessions/<session_id>")
    def api_session_end(session_id):
        session, ticker = get_session(session_id)
        ticker.cancel()
        with sessions_lock:
            sessions.pop(session_id, None)
        return jsonify({"ok": True, "score": session.total_score})

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
