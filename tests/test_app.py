"""
Tests for the JSON API wired around an injected ledger and launch gate.
"""

import threading

import pytest

from app import create_app
from launch_gate import LaunchGate
from models import DeviceSignals, GameId, ProbeResult, RewardId


@pytest.fixture
def gate(make_gate):
    gate, _ = make_gate(battery_level=100)
    return gate


@pytest.fixture
def client(ledger, gate):
    app = create_app(ledger=ledger, gate=gate)
    app.testing = True
    return app.test_client()


class TestLaunch:

    def test_loading_until_probe_returns(self, ledger):
        release = threading.Event()

        def slow_transport(url):
            release.wait(5)
            return ProbeResult(status_code=200)

        gate = LaunchGate(lambda: DeviceSignals(30, False), "https://example.com/probe", transport=slow_transport)
        client = create_app(ledger=ledger, gate=gate).test_client()

        assert client.get("/api/launch").get_json() == {"resolved": False, "screen": "loading"}

        release.set()
        gate.wait(timeout=5)
        body = client.get("/api/launch").get_json()
        assert body == {
            "resolved": True,
            "decision": "alternate",
            "screen": "remote",
            "remote_url": "https://example.com/probe",
        }

    def test_normal_shows_onboarding_first(self, client, gate):
        gate.evaluate()
        body = client.get("/api/launch").get_json()
        assert body["decision"] == "normal"
        assert body["screen"] == "onboarding"

    def test_normal_after_onboarding_shows_main(self, client, gate, ledger):
        gate.evaluate()
        ledger.set_onboarding_completed()
        assert client.get("/api/launch").get_json()["screen"] == "main"

    def test_first_request_starts_gate(self, client, gate):
        client.get("/api/games")
        assert gate.wait(timeout=5) is not None


class TestOnboarding:

    def test_complete_onboarding(self, client, ledger):
        assert client.get("/api/onboarding").get_json() == {"completed": False}
        resp = client.post("/api/onboarding/complete")
        assert resp.status_code == 200
        assert ledger.has_completed_onboarding
        assert client.get("/api/onboarding").get_json() == {"completed": True}


class TestScores:

    def test_record_score(self, client, ledger):
        resp = client.post("/api/score", json={"game": "memory", "points": 30})
        assert resp.status_code == 200
        assert resp.get_json() == {"ok": True, "average": 30.0}
        assert ledger.scores_for(GameId.MEMORY) == (30,)

    @pytest.mark.parametrize("payload", [
        {"game": "memory", "points": -5},
        {"game": "memory", "points": "10"},
        {"game": "memory", "points": True},
        {"game": "memory"},
    ])
    def test_bad_points(self, client, payload):
        resp = client.post("/api/score", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["ok"] is False

    def test_unknown_game(self, client):
        resp = client.post("/api/score", json={"game": "chess", "points": 1})
        assert resp.status_code == 404

    def test_non_object_body(self, client):
        resp = client.post("/api/score", json=[1, 2])
        assert resp.status_code == 400

    def test_grant_reward(self, client, ledger):
        assert client.post("/api/reward", json={"reward": "badge_of_logic"}).status_code == 200
        assert ledger.earned_rewards == {RewardId.BADGE_OF_LOGIC}
        assert client.post("/api/reward", json={"reward": "gold"}).status_code == 400

    def test_level_completion(self, client, ledger):
        resp = client.post("/api/games/focus/levels", json={"level": 3})
        assert resp.get_json() == {"ok": True, "points": 45, "reward": "flame_of_focus"}
        assert ledger.scores_for(GameId.FOCUS) == (45,)
        assert RewardId.FLAME_OF_FOCUS in ledger.earned_rewards

    def test_level_out_of_range(self, client, ledger):
        assert client.post("/api/games/memory/levels", json={"level": 11}).status_code == 400
        assert client.post("/api/games/memory/levels", json={"level": 0}).status_code == 400
        assert ledger.scores_for(GameId.MEMORY) == ()


class TestStats:

    def test_stats(self, client):
        client.post("/api/games/math/levels", json={"level": 1})
        client.post("/api/games/math/levels", json={"level": 2})
        client.post("/api/games/logic/levels", json={"level": 3})

        body = client.get("/api/stats").get_json()

        assert body["games"]["math"] == 30.0
        assert body["games"]["logic"] == 60.0
        assert body["games"]["memory"] == 0
        assert body["overall_average"] == pytest.approx(40.0)
        assert body["rewards"]["star_of_speed"] is True
        assert body["rewards"]["crystal_of_memory"] is False

    def test_reset_needs_confirmation(self, client, ledger):
        ledger.record_score(GameId.MEMORY, 10)
        assert client.post("/api/stats/reset").status_code == 400
        assert client.post("/api/stats/reset", json={"confirm": "yes"}).status_code == 400
        assert ledger.overall_average_score() == 10.0

    def test_reset(self, client, ledger):
        ledger.record_score(GameId.MEMORY, 10)
        ledger.grant_reward(RewardId.CRYSTAL_OF_MEMORY)
        assert client.post("/api/stats/reset", json={"confirm": True}).status_code == 200
        body = client.get("/api/stats").get_json()
        assert body["overall_average"] == 0
        assert not any(body["rewards"].values())


class TestSessions:

    def test_session_flow(self, client, ledger):
        resp = client.post("/api/games/logic/sessions")
        assert resp.status_code == 201
        session_id = resp.get_json()["id"]

        assert client.post(f"/api/sessions/{session_id}/begin").get_json()["phase"] == "playing"
        body = client.post(f"/api/sessions/{session_id}/answer", json={"correct": True}).get_json()
        assert body["phase"] == "result"
        body = client.post(f"/api/sessions/{session_id}/continue").get_json()
        assert body["phase"] == "instruction"
        assert body["level"] == 2
        assert ledger.scores_for(GameId.LOGIC) == (20,)

        resp = client.delete(f"/api/sessions/{session_id}")
        assert resp.get_json() == {"ok": True, "score": 20}
        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    def test_bad_transition_is_conflict(self, client):
        session_id = client.post("/api/games/memory/sessions").get_json()["id"]
        resp = client.post(f"/api/sessions/{session_id}/continue")
        assert resp.status_code == 409
        assert resp.get_json()["ok"] is False

    def test_answer_needs_boolean(self, client):
        session_id = client.post("/api/games/logic/sessions").get_json()["id"]
        client.post(f"/api/sessions/{session_id}/begin")
        assert client.post(f"/api/sessions/{session_id}/answer", json={"correct": 1}).status_code == 400

    def test_unknown_session(self, client):
        assert client.get("/api/sessions/nope").status_code == 404


def test_catalog(client):
    body = client.get("/api/games").get_json()
    assert [g["id"] for g in body["games"]] == ["memory", "focus", "math", "logic"]
    assert {r["id"] for r in body["rewards"]} == {r.value for r in RewardId}


def test_completed_sessions_are_released(client):
    sessions = client.application.extensions["mindcascade"]["sessions"]
    for _ in range(5):
        session_id = client.post("/api/games/focus/sessions").get_json()["id"]
        client.post(f"/api/sessions/{session_id}/begin")
        client.post(f"/api/sessions/{session_id}/answer", json={"correct": False})
        body = client.post(f"/api/sessions/{session_id}/continue").get_json()
        assert body["phase"] == "complete"
        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    assert sessions == {}
