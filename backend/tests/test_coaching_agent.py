import pytest

from bizcoach.coach.agent import (
    EMPTY_REPLY_PLACEHOLDER,
    FALLBACK_REPLY,
    CoachingAgent,
)
from bizcoach.coach.errors import (
    CoachResponseError,
    ModelCallError,
    ModelErrorKind,
    PreconditionError,
)
from bizcoach.coach.prompts import OPENING_MESSAGES
from bizcoach.coach.state import CoachingState
from bizcoach.models.coaching_session import CoachingStage, CoachingStyle, CoachType
from tests.fakes import FakeModelClient, completion, outline_input, plan_input, text, tool


MODELS = ["model-a", "model-b"]


def _agent(client: FakeModelClient, **state_fields) -> CoachingAgent:
    state = CoachingState(session_id="session-1", **state_fields)
    return CoachingAgent(state, client=client, models=MODELS)


def test_start_session_uses_fixed_opening_without_model_call():
    client = FakeModelClient()
    agent = _agent(client, coach_type=CoachType.LEADERSHIP)

    reply = agent.start_session()

    assert reply.content == OPENING_MESSAGES[CoachType.LEADERSHIP]
    assert agent.state.stage is CoachingStage.DISCOVERY
    assert [message.role for message in agent.state.messages] == ["coach"]
    assert client.calls == []


def test_chat_appends_user_and_coach_messages():
    client = FakeModelClient(completion(text("Tell me about your offers.")))
    agent = _agent(client)
    agent.start_session()

    turn = agent.chat("I run a design studio")

    assert turn.content == "Tell me about your offers."
    assert turn.stage is CoachingStage.DISCOVERY
    assert [message.role for message in agent.state.messages] == ["coach", "user", "coach"]
    assert agent.state.messages[1].content == "I run a design studio"


def test_history_replays_messages_in_order_with_assistant_role():
    client = FakeModelClient(completion(text("first")), completion(text("second")))
    agent = _agent(client)
    agent.start_session()
    agent.chat("one")

    agent.chat("two")

    request, model = client.calls[-1]
    assert model == "model-a"
    assert [(m.role, m.content) for m in request.history] == [
        ("assistant", OPENING_MESSAGES[CoachType.STRATEGY]),
        ("user", "one"),
        ("assistant", "first"),
        ("user", "two"),
    ]
    assert {entry["name"] for entry in request.tools} >= {"generate_business_plan"}


def test_message_count_grows_by_two_per_successful_turn():
    client = FakeModelClient(*(completion(text(f"reply {n}")) for n in range(3)))
    agent = _agent(client)
    agent.start_session()

    for n in range(3):
        agent.chat(f"message {n}")

    assert len(agent.state.messages) == 1 + 2 * 3


def test_system_prompt_follows_stage_changes():
    client = FakeModelClient(
        completion(text("Moving on."), tool("transition_to_stage", stage="plan_generation")),
        completion(text("Here is your plan."), tool("generate_business_plan", plan=plan_input())),
    )
    agent = _agent(client)
    agent.start_session()

    agent.chat("That's everything")
    turn = agent.chat("Go ahead")

    second_request, _ = client.calls[1]
    assert "CURRENT STAGE: Plan Generation" in second_request.system_prompt
    assert turn.stage is CoachingStage.SUPPORT
    assert "CURRENT PLAN CONTEXT" in agent.system_prompt


def test_tool_only_response_uses_placeholders():
    client = FakeModelClient(
        completion(tool("mark_discovery_complete", area="revenue", keyFindings=["$10k/mo"]))
    )
    agent = _agent(client)

    turn = agent.chat("We make about 10k a month")

    assert turn.content == FALLBACK_REPLY
    assert agent.state.messages[-1].content == EMPTY_REPLY_PLACEHOLDER
    assert agent.state.business_profile.extensions["revenue"] == ["$10k/mo"]


def test_quick_replies_are_stored_on_the_coach_message():
    client = FakeModelClient(
        completion(text("Pick one"), tool("offer_quick_replies", options=[{"label": "A", "value": "a"}]))
    )
    agent = _agent(client)

    turn = agent.chat("help")

    assert turn.quick_replies[0].label == "A"
    assert agent.state.messages[-1].quick_replies[0].value == "a"


def test_model_failure_raises_typed_error_and_keeps_user_message_in_memory():
    client = FakeModelClient(
        ModelCallError("rate limited", kind=ModelErrorKind.RATE_LIMITED, status_code=429),
        ModelCallError("overloaded", kind=ModelErrorKind.UNAVAILABLE, status_code=503),
    )
    agent = _agent(client)
    agent.start_session()

    with pytest.raises(CoachResponseError) as excinfo:
        agent.chat("Are you there?")

    assert str(excinfo.value).startswith("Failed to get AI response: All models failed.")
    assert isinstance(excinfo.value.cause, ModelCallError)
    assert [message.role for message in agent.state.messages] == ["coach", "user"]


def test_revise_requires_an_outline():
    agent = _agent(FakeModelClient())

    with pytest.raises(PreconditionError, match="No outline generated yet"):
        agent.revise("Make it shorter")


def test_revise_replaces_outline_and_appends_turn():
    revised = outline_input()
    revised["outline"]["summary"] = "Shorter page focused on pre-orders."
    client = FakeModelClient(
        completion(tool("generate_outline", **outline_input())),
        completion(text("Updated."), tool("generate_outline", **revised)),
    )
    agent = _agent(client)
    agent.chat("Build me a landing page")

    turn = agent.revise("Make it shorter")

    request, _ = client.calls[-1]
    assert '"Make it shorter"' in request.history[-1].content
    assert "Current outline:" in request.history[-1].content
    assert turn.outline.summary == "Shorter page focused on pre-orders."
    assert agent.state.outline.summary == "Shorter page focused on pre-orders."
    assert len(agent.state.messages) == 4


def test_switch_coach_keeps_history_and_artifacts():
    client = FakeModelClient(completion(text("Plan ready"), tool("generate_business_plan", plan=plan_input())))
    agent = _agent(client)
    agent.start_session()
    agent.chat("Let's plan")
    before = list(agent.state.messages)

    agent.switch_coach(CoachType.BRAND)

    assert agent.state.coach_type is CoachType.BRAND
    assert agent.state.coaching_style is CoachingStyle.MENTOR
    assert agent.state.messages == before
    assert agent.state.stage is CoachingStage.SUPPORT
    assert agent.state.plan is not None
    assert agent.system_prompt.startswith("You are a Brand & Positioning Coach")

    agent.switch_coach(CoachType.BRAND, CoachingStyle.REALIST)
    assert agent.state.coaching_style is CoachingStyle.REALIST
