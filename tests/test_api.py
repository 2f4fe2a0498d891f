from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from agentguard.api import app
from agentguard.state import AgentState, ExecutionStatus


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def test_state_and_step(client: TestClient) -> None:
    created = client.post("/state", json={"query": "What is 2+2?", "iteration_limit": 2})
    assert created.status_code == 200
    state_json = created.json()["serialized_state"]
    assert AgentState.from_json(state_json).iteration_limit == 2

    stepped = client.post(
        "/step", json={"serialized_state": state_json, "model_output": "4"}
    )
    assert stepped.status_code == 200
    body = stepped.json()
    assert body["decision"] == {"type": "done", "answer": "4"}
    assert AgentState.from_json(body["serialized_state"]).status is ExecutionStatus.DONE


def test_step_on_finished_task_is_a_bad_request(client: TestClient) -> None:
    done = AgentState(query="q", iteration=1, status=ExecutionStatus.DONE, final_answer="4")
    response = client.post(
        "/step", json={"serialized_state": done.to_json(), "model_output": "again"}
    )
    assert response.status_code == 400


def test_step_with_bad_state_is_a_bad_request(client: TestClient) -> None:
    response = client.post("/step", json={"serialized_state": "{}", "model_output": "x"})
    assert response.status_code == 400


def test_guard_categories(client: TestClient) -> None:
    accepted = client.post(
        "/guard", json={"result": {"success": True, "output": "README.md\nCargo.toml"}}
    )
    assert accepted.status_code == 200
    assert accepted.json() == {"category": "accepted", "output": "README.md\nCargo.toml"}

    rejected = client.post("/guard", json={"result": {"success": True, "output": "total 12"}})
    assert rejected.status_code == 422
    assert rejected.json() == {"category": "rejected", "reason": "metadata-only output"}

    failed = client.post(
        "/guard", json={"result": {"success": False, "error": "exit status 2"}, "capability": "shell"}
    )
    assert failed.status_code == 502
    assert failed.json() == {"category": "error", "reason": "exit status 2"}


def test_failed_result_without_error_is_invalid(client: TestClient) -> None:
    response = client.post("/guard", json={"result": {"success": False}})
    assert response.status_code == 422
    assert "detail" in response.json()


def test_extract_validate(client: TestClient) -> None:
    ok = client.post(
        "/skills/extract/validate",
        json={"text": "Contact support@x.com", "target": "email", "candidate": '{"email": ["support@x.com"]}'},
    )
    assert ok.status_code == 200
    assert ok.json()["result"] == {"email": ["support@x.com"]}

    schema = client.post(
        "/skills/extract/validate",
        json={"text": "Contact support@x.com", "target": "email", "candidate": '{"emails": []}'},
    )
    assert schema.status_code == 422
    assert schema.json()["code"] == "SchemaViolation"


def test_extract_with_patterns(client: TestClient) -> None:
    response = client.post("/skills/extract", json={"text": "Nothing here", "target": "date"})
    assert response.status_code == 200
    assert response.json() == {"category": "accepted", "result": {"date": []}}


def test_extract_invalid_target(client: TestClient) -> None:
    response = client.post("/skills/extract", json={"text": "Call me", "target": "phone"})
    assert response.status_code == 422
    assert response.json()["code"] == "InvalidTarget"
