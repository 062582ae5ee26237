from bizcoach.coach.errors import ModelCallError, ModelErrorKind
from bizcoach.coach.prompts import OPENING_MESSAGES
from bizcoach.models.coaching_session import CoachType
from tests.fakes import completion, outline_input, plan_input, text, tool


def _start(client, headers, **body) -> str:
    response = client.post("/coaching/start", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["session_id"]


def test_requires_authentication(client):
    assert client.post("/coaching/start", json={}).status_code == 401
    assert client.get("/coaching/").status_code == 401


def test_strategy_mentor_session_reaches_support_with_plan(client, auth_headers, fake_model):
    response = client.post(
        "/coaching/start",
        json={"coach_type": "strategy", "coaching_style": "mentor"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"]["content"] == OPENING_MESSAGES[CoachType.STRATEGY]
    assert body["stage"] == "discovery"
    session_id = body["session_id"]

    fake_model.queue(
        completion(
            text("Here is your strategic plan."),
            tool(
                "generate_business_plan",
                plan=plan_input(objectives=2, phases=3, metrics=3, risks=3),
            ),
        )
    )
    turn = client.post(
        f"/coaching/{session_id}/chat",
        json={"message": "We are a 3-person agency stuck at $15k/month."},
        headers=auth_headers,
    )
    assert turn.status_code == 200, turn.text
    payload = turn.json()
    assert payload["content"] == "Here is your strategic plan."
    assert payload["stage"] == "support"
    assert len(payload["plan"]["objectives"]) == 2

    session = client.get(f"/coaching/{session_id}", headers=auth_headers).json()
    assert session["stage"] == "support"
    assert session["status"] == "outline_ready"
    assert session["message_count"] == 3
    plan = session["plan"]
    assert (len(plan["objectives"]), len(plan["phases"]), len(plan["metrics"]), len(plan["risks"])) == (
        2,
        3,
        3,
        3,
    )


def test_failed_chat_does_not_persist_the_turn(client, auth_headers, fake_model):
    session_id = _start(client, auth_headers)
    fake_model.queue(
        *[
            ModelCallError("rate limited", kind=ModelErrorKind.RATE_LIMITED, status_code=429)
            for _ in range(3)
        ]
    )

    response = client.post(
        f"/coaching/{session_id}/chat", json={"message": "Hello?"}, headers=auth_headers
    )

    assert response.status_code == 502
    assert response.json()["detail"] == "AI model unavailable. Please try again in a moment."
    session = client.get(f"/coaching/{session_id}", headers=auth_headers).json()
    assert session["message_count"] == 1


def test_authentication_failure_upstream_is_reported_as_model_failure(client, auth_headers, fake_model):
    session_id = _start(client, auth_headers)
    fake_model.queue(ModelCallError("bad key", kind=ModelErrorKind.AUTHENTICATION, status_code=401))

    response = client.post(
        f"/coaching/{session_id}/chat", json={"message": "Hi"}, headers=auth_headers
    )

    assert response.status_code == 502
    assert len(fake_model.calls) == 1


def test_other_users_session_is_forbidden_and_missing_is_404(client, auth_headers, other_headers):
    session_id = _start(client, auth_headers)

    assert client.get(f"/coaching/{session_id}", headers=other_headers).status_code == 403
    assert (
        client.post(
            f"/coaching/{session_id}/chat", json={"message": "hi"}, headers=other_headers
        ).status_code
        == 403
    )
    assert client.get("/coaching/does-not-exist", headers=auth_headers).status_code == 404


def test_list_sessions_only_returns_own(client, auth_headers, other_headers):
    mine = _start(client, auth_headers, coach_type="brand")
    _start(client, other_headers)

    sessions = client.get("/coaching/", headers=auth_headers).json()

    assert [entry["id"] for entry in sessions] == [mine]
    assert sessions[0]["coach_type"] == "brand"
    assert sessions[0]["status"] == "in_progress"


def test_switch_coach_keeps_conversation(client, auth_headers, fake_model):
    session_id = _start(client, auth_headers)
    fake_model.queue(completion(text("Tell me more.")))
    client.post(f"/coaching/{session_id}/chat", json={"message": "Hi"}, headers=auth_headers)

    response = client.post(
        f"/coaching/{session_id}/switch-coach",
        json={"coach_type": "leadership", "coaching_style": "accountability_partner"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Switched to Leadership & Vision coach"
    session = client.get(f"/coaching/{session_id}", headers=auth_headers).json()
    assert session["coach_type"] == "leadership"
    assert session["coaching_style"] == "accountability_partner"
    assert session["message_count"] == 3


def test_switch_coach_rejects_unknown_type(client, auth_headers):
    session_id = _start(client, auth_headers)

    response = client.post(
        f"/coaching/{session_id}/switch-coach", json={"coach_type": "wizard"}, headers=auth_headers
    )

    assert response.status_code == 422


def test_revise_without_outline_is_rejected(client, auth_headers, fake_model):
    session_id = _start(client, auth_headers)

    response = client.post(
        f"/coaching/{session_id}/revise", json={"feedback": "Shorter"}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "No outline generated yet"
    assert fake_model.calls == []


def test_revise_updates_outline(client, auth_headers, fake_model):
    session_id = _start(client, auth_headers)
    revised = outline_input()
    revised["outline"]["summary"] = "Revised summary"
    fake_model.queue(
        completion(text("Draft ready."), tool("generate_outline", **outline_input())),
        completion(text("Revised."), tool("generate_outline", **revised)),
    )
    client.post(f"/coaching/{session_id}/chat", json={"message": "Landing page"}, headers=auth_headers)

    response = client.post(
        f"/coaching/{session_id}/revise", json={"feedback": "Shorter"}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["outline"]["summary"] == "Revised summary"
    session = client.get(f"/coaching/{session_id}", headers=auth_headers).json()
    assert session["outline"]["summary"] == "Revised summary"
    assert session["message_count"] == 5


def test_approve_without_artifact_is_rejected(client, auth_headers):
    session_id = _start(client, auth_headers)

    response = client.post(
        f"/coaching/{session_id}/approve", json={"project_name": "Nope"}, headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "No plan or outline to approve"


def test_approve_plan_creates_project(client, auth_headers, fake_model):
    session_id = _start(client, auth_headers)
    fake_model.queue(
        completion(text("Outline first."), tool("generate_outline", **outline_input())),
        completion(text("Plan now."), tool("generate_business_plan", plan=plan_input())),
    )
    client.post(f"/coaching/{session_id}/chat", json={"message": "one"}, headers=auth_headers)
    client.post(f"/coaching/{session_id}/chat", json={"message": "two"}, headers=auth_headers)

    response = client.post(
        f"/coaching/{session_id}/approve", json={"project_name": "Agency Growth"}, headers=auth_headers
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["project"]["name"] == "Agency Growth"
    assert body["project"]["status"] == "outline_ready"
    assert body["project"]["plan"]["strategyOverview"]
    assert body["project"]["outline"] is None
    session = client.get(f"/coaching/{session_id}", headers=auth_headers).json()
    assert session["status"] == "approved"
    assert session["stage"] == "support"


def test_ai_coach_passthrough_returns_blocks_and_model(client, auth_headers, fake_model):
    fake_model.queue(completion(text("Hi!"), model="claude-sonnet-4-5"))

    response = client.post(
        "/ai-coach",
        json={"messages": [{"role": "user", "content": "Hello"}], "system": "Be brief"},
        headers=auth_headers,
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["response"] == [{"type": "text", "text": "Hi!"}]
    assert body["model"] == "claude-sonnet-4-5"
    assert body["usage"] == {"input_tokens": 12, "output_tokens": 34}
    request, _ = fake_model.calls[0]
    assert request.system_prompt == "Be brief"


def test_ai_coach_rejects_unknown_roles(client, auth_headers):
    response = client.post(
        "/ai-coach",
        json={"messages": [{"role": "system", "content": "Hello"}]},
        headers=auth_headers,
    )

    assert response.status_code == 400
