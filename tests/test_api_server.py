from __future__ import annotations

import socket
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import make_question, make_record
from quizzy.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quizzy.core.quiz_manager import QuizManager
from quizzy.core.services.question_pool import QuestionPool
from quizzy.core.services.result_store import InMemoryResultStore
from quizzy.server.api_server import create_api_app, start_api_server

ALICE = {"X-Quizzy-Owner": "alice-0123456789"}


@pytest.fixture
def store() -> InMemoryResultStore:
    return InMemoryResultStore()


@pytest.fixture
def client(store) -> TestClient:
    pool = QuestionPool([make_question(f"q{i}", correct_index=0) for i in range(5)])
    manager = QuizManager(pool=pool, store=store)
    return TestClient(create_api_app(manager))


def test_requests_without_identity_are_rejected(client):
    assert client.post("/quiz").status_code == 401
    assert client.get("/me").status_code == 401


def test_health_reports_pool_size(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "question_count": 5}


def test_complete_quiz_over_http(client, store):
    state = client.post("/quiz", headers=ALICE).json()
    assert state["total"] == 5
    assert state["question_html"].startswith("<p>")
    assert state["options_html"] == ["Option 0", "Option 1", "Option 2", "Option 3"]
    assert "correct_index" not in state

    for step in range(5):
        choice = 0 if step < 3 else 1
        selected = client.post("/quiz/select", json={"selected_option_index": choice}, headers=ALICE)
        assert selected.json()["selected_option_index"] == choice
        state = client.post("/quiz/next", headers=ALICE).json()

    assert state["completed"] is True
    assert state["question_id"] is None

    finished = client.post("/quiz/finish", headers=ALICE)
    assert finished.status_code == 201
    body = finished.json()
    assert body["result"]["score"] == 3
    assert body["result"]["percentage"] == 60
    assert body["persisted"] is True
    assert len(store.query_all()) == 1

    me = client.get("/me", headers=ALICE).json()
    assert me["attempt_count"] == 1
    assert me["best_score"] == 3


def test_state_machine_misuse_maps_to_conflict(client):
    assert client.get("/quiz", headers=ALICE).status_code == 404

    client.post("/quiz", headers=ALICE)
    response = client.post("/quiz/next", headers=ALICE)
    assert response.status_code == 409
    assert response.json()["error"] == "NoSelectionError"

    assert client.post("/quiz/finish", headers=ALICE).status_code == 409
    assert client.post("/quiz/select", json={"selected_option_index": 9}, headers=ALICE).status_code == 422


def test_abandon_quiz(client):
    client.post("/quiz", headers=ALICE)

    assert client.delete("/quiz", headers=ALICE).status_code == 204
    assert client.get("/quiz", headers=ALICE).status_code == 404


def test_empty_pool_is_service_unavailable():
    client = TestClient(create_api_app(QuizManager()))

    response = client.post("/quiz", headers=ALICE)

    assert response.status_code == 503
    assert response.json()["error"] == "EmptyPoolError"


def test_leaderboard_shortens_owner_ids(client, store):
    store.append(make_record("alice-0123456789", 3, 100))
    store.append(make_record("bob", 3, 50))
    store.append(make_record("alice-0123456789", 5, 200))

    rows = client.get("/leaderboard", params={"limit": 2}).json()["rows"]

    assert [(row["rank"], row["user"], row["score"]) for row in rows] == [
        (1, "alic...6789", 5),
        (2, "bob", 3),
    ]


def test_profile_name_and_history(client, store):
    store.append(make_record("alice-0123456789", 2, 10))
    store.append(make_record("alice-0123456789", 4, 20))

    assert client.put("/me", json={"display_name": "Alice"}, headers=ALICE).json() == {"name": "Alice"}
    assert client.put("/me", json={"display_name": " "}, headers=ALICE).status_code == 422
    assert client.get("/me", headers=ALICE).json()["name"] == "Alice"

    attempts = client.get("/me/history", params={"limit": 1}, headers=ALICE).json()["attempts"]
    assert [a["score"] for a in attempts] == [4]


def test_app_metadata_describes_quizzy(client):
    schema = client.get("/openapi.json").json()

    assert schema["info"]["title"] == f"{APP_NAME} API"
    assert schema["info"]["version"] == APP_VERSION
    assert schema["info"]["description"] == APP_ABOUT_TEXT
    assert schema["info"]["license"] == {"name": APP_LICENSE}


def test_boolean_selection_is_rejected(client):
    client.post("/quiz", headers=ALICE)

    response = client.post("/quiz/select", json={"selected_option_index": True}, headers=ALICE)

    assert response.status_code == 422
    assert client.get("/quiz", headers=ALICE).json()["selected_option_index"] is None


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_start_api_server_serves_from_background_thread():
    port = _free_port()
    manager = QuizManager(pool=QuestionPool([make_question("q0")]))

    thread = start_api_server(manager, host="127.0.0.1", port=port)

    response = None
    deadline = time.monotonic() + 10
    while time.monotonic() < deadline:
        try:
            response = httpx.get(f"http://127.0.0.1:{port}/health", timeout=1)
            break
        except httpx.HTTPError:
            time.sleep(0.1)

    assert thread.daemon is True
    assert thread.is_alive()
    assert response is not None
    assert response.json() == {"status": "ok", "question_count": 1}
