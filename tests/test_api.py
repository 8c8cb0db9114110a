"""
Testing API via TestClient
- The controller fixture always draws 42, so the answer is predictable.
- Commentary comes from a fake client; background tasks finish before the call returns.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from guessgame.commentary_client import PENDING_COMMENT
from guessgame.db import get_db
from guessgame.leaderboard import MISSING_TABLE_ADVISORY
from guessgame.main import app, get_leaderboard


def test_start_guess_and_win(client, commentary):
    """
    Flow:
    1) Start a game.
    2) Out-of-range guess -> 422, history untouched.
    3) Wrong guesses -> UP / DOWN.
    4) Winning guess -> FINISHED, saved to the leaderboard, target revealed.
    """
    response = client.post("/game/start", json={"player_name": "  민지 "})
    assert response.status_code == 200
    state = response.json()
    assert state["status"] == "PLAYING"
    assert state["player_name"] == "민지"
    assert state["history"] == []
    assert state["target"] is None

    response = client.post("/game/guess", json={"guess": 101})
    assert response.status_code == 422
    assert client.get("/game").json()["history"] == []

    response = client.post("/game/guess", json={"guess": 10})
    assert response.status_code == 200
    assert response.json()["verdict"] == "UP"

    response = client.post("/game/guess", json={"guess": 70})
    assert response.json()["verdict"] == "DOWN"

    response = client.post("/game/guess", json={"guess": 42})
    assert response.status_code == 200
    final = response.json()
    assert final["verdict"] == "CORRECT"
    assert final["state"]["status"] == "FINISHED"
    assert final["state"]["attempts"] == 3
    assert final["state"]["target"] == 42
    assert final["state"]["is_new_record"] is True
    assert [h["verdict"] for h in final["state"]["history"]] == ["CORRECT", "DOWN", "UP"]

    board = client.get("/leaderboard").json()
    assert len(board["entries"]) == 1
    assert board["entries"][0]["player_name"] == "민지"
    assert board["entries"][0]["attempts"] == 3
    assert board["warning"] is None

    best = client.get("/leaderboard/best")
    assert best.status_code == 200
    assert best.json()["attempts"] == 3


def test_commentary_is_attached_after_response(client, commentary):
    client.post("/game/start", json={"player_name": "a"})
    response = client.post("/game/guess", json={"guess": 30})
    # the response carries the quick verdict, not the commentary
    assert response.json()["state"]["history"][0]["commentary"] == PENDING_COMMENT

    state = client.get("/game").json()
    assert state["history"][0]["commentary"] == "comment for 30"
    assert state["host_message"] == "comment for 30"
    assert commentary.calls == [(30, "UP", [30])]


def test_blank_name_rejected(client):
    response = client.post("/game/start", json={"player_name": "   "})
    assert response.status_code == 400
    assert client.get("/game").json()["status"] == "LOBBY"


def test_guess_in_lobby_conflicts(client):
    response = client.post("/game/guess", json={"guess": 50})
    assert response.status_code == 409


def test_non_numeric_guess_rejected(client):
    client.post("/game/start", json={"player_name": "a"})
    response = client.post("/game/guess", json={"guess": "abc"})
    assert response.status_code == 422
    assert client.get("/game").json()["history"] == []


def test_cannot_guess_after_game_finished(client):
    client.post("/game/start", json={"player_name": "a"})
    client.post("/game/guess", json={"guess": 42})

    response = client.post("/game/guess", json={"guess": 42})
    assert response.status_code == 409
    state = client.get("/game").json()
    assert state["status"] == "FINISHED"
    assert state["attempts"] == 1


def test_reset_returns_to_lobby(client):
    client.post("/game/start", json={"player_name": "a"})
    client.post("/game/guess", json={"guess": 42})

    response = client.post("/game/reset")
    assert response.status_code == 200
    state = response.json()
    assert state["status"] == "LOBBY"
    assert state["player_name"] is None
    assert state["history"] == []
    assert state["elapsed_seconds"] == 0.0
    assert state["is_new_record"] is False
    assert state["best_record"]["player_name"] == "a"


def test_second_game_is_not_a_record_when_slower(client):
    client.post("/game/start", json={"player_name": "first"})
    client.post("/game/guess", json={"guess": 42})
    client.post("/game/reset")

    client.post("/game/start", json={"player_name": "second"})
    client.post("/game/guess", json={"guess": 1})
    final = client.post("/game/guess", json={"guess": 42}).json()
    assert final["state"]["is_new_record"] is False

    entries = client.get("/leaderboard").json()["entries"]
    assert [e["player_name"] for e in entries] == ["first", "second"]


def test_best_record_404_when_empty(client):
    assert client.get("/leaderboard/best").status_code == 404


def test_leaderboard_limit_validated(client):
    assert client.get("/leaderboard?limit=0").status_code == 422
    assert client.get("/leaderboard?limit=11").status_code == 422
    assert client.get("/leaderboard?limit=5").status_code == 200


def test_boolean_guess_is_rejected(client):
    client.post("/game/start", json={"player_name": "a"})
    response = client.post("/game/guess", json={"guess": True})
    assert response.status_code == 422
    assert client.get("/game").json()["history"] == []


def test_string_guess_is_rejected(client):
    client.post("/game/start", json={"player_name": "a"})
    response = client.post("/game/guess", json={"guess": "42"})
    assert response.status_code == 422
    assert client.get("/game").json()["history"] == []


def test_invalid_stored_rows_do_not_break_endpoints(client, db_session):
    db_session.execute(
        text(
            "INSERT INTO game_leaderboard (id, player_name, attempts, time_seconds, created_at) "
            "VALUES ('bad-1', 'zero', 0, 1.0, '2024-01-01 00:00:00')"
        )
    )
    db_session.commit()

    response = client.get("/leaderboard")
    assert response.status_code == 200
    assert response.json()["entries"] == []

    client.post("/game/start", json={"player_name": "a"})
    response = client.post("/game/guess", json={"guess": 42})
    assert response.status_code == 200
    state = response.json()["state"]
    assert state["status"] == "FINISHED"
    assert state["best_record"]["player_name"] == "a"


def test_broken_leaderboard_keeps_game_playable(client, make_leaderboard):
    app.dependency_overrides[get_leaderboard] = lambda: make_leaderboard(fail_fetch=True, fail_insert=True)

    response = client.get("/leaderboard")
    assert response.status_code == 200
    assert response.json()["entries"] == []
    assert response.json()["warning"] is not None

    client.post("/game/start", json={"player_name": "a"})
    assert client.post("/game/guess", json={"guess": 10}).status_code == 200
    response = client.post("/game/guess", json={"guess": 42})
    assert response.status_code == 200
    state = response.json()["state"]
    assert state["status"] == "FINISHED"
    assert state["leaderboard_warning"] == "Could not save your result."

    assert client.post("/game/reset").status_code == 200
    assert client.get("/leaderboard/best").status_code == 404


def test_missing_table_keeps_game_playable(client):
    bare = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = sessionmaker(bind=bare, future=True)()

    def _get_db_without_tables():
        yield db

    app.dependency_overrides[get_db] = _get_db_without_tables
    try:
        response = client.get("/leaderboard")
        assert response.status_code == 200
        assert response.json()["warning"] == MISSING_TABLE_ADVISORY

        client.post("/game/start", json={"player_name": "a"})
        response = client.post("/game/guess", json={"guess": 42})
        assert response.status_code == 200
        assert response.json()["state"]["status"] == "FINISHED"
    finally:
        db.close()
