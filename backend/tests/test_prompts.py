import json

import pytest

from bizcoach.coach.prompts import (
    COACH_PROMPTS,
    OPENING_MESSAGES,
    STYLE_MODIFIERS,
    build_revision_prompt,
    build_system_prompt,
)
from bizcoach.models.coaching_session import CoachingStage, CoachingStyle, CoachType
from bizcoach.schemas.coaching import BusinessPlan, ProjectOutline
from tests.fakes import outline_input, plan_input


@pytest.mark.parametrize("coach_type", list(CoachType))
def test_every_coach_type_has_prompt_and_opening(coach_type):
    assert "YOUR DISCOVERY GOALS" in COACH_PROMPTS[coach_type]
    assert OPENING_MESSAGES[coach_type].startswith("Thanks for choosing the")


@pytest.mark.parametrize("style", list(CoachingStyle))
def test_every_style_has_modifier(style):
    assert STYLE_MODIFIERS[style].startswith("YOUR STYLE:")


def test_prompt_is_coach_then_style_then_stage():
    prompt = build_system_prompt(
        CoachType.BRAND, CoachingStyle.REALIST, CoachingStage.DISCOVERY
    )

    assert prompt.startswith(COACH_PROMPTS[CoachType.BRAND])
    assert prompt.index("YOUR STYLE: Realist") < prompt.index("CURRENT STAGE: Discovery")
    assert f"{COACH_PROMPTS[CoachType.BRAND]}\n\n{STYLE_MODIFIERS[CoachingStyle.REALIST]}\n\n" in prompt


def test_prompt_is_deterministic():
    plan = BusinessPlan.model_validate(plan_input())
    args = (CoachType.LEADERSHIP, CoachingStyle.ACCOUNTABILITY_PARTNER, CoachingStage.SUPPORT, plan)

    assert build_system_prompt(*args) == build_system_prompt(*args)


def test_support_stage_lists_plan_context():
    plan = BusinessPlan.model_validate(plan_input(objectives=2))

    prompt = build_system_prompt(
        CoachType.STRATEGY, CoachingStyle.MENTOR, CoachingStage.SUPPORT, plan
    )

    assert "A strategic plan has been generated and is available" in prompt
    assert "CURRENT PLAN CONTEXT:" in prompt
    assert "- Objectives: Objective 1, Objective 2" in prompt
    assert "- Phases: Foundation, Build & Optimize, Scale & Refine" in prompt
    assert "- Key Metrics: Metric 1, Metric 2, Metric 3" in prompt


def test_support_stage_without_plan_has_no_plan_context():
    prompt = build_system_prompt(CoachType.STRATEGY, CoachingStyle.MENTOR, CoachingStage.SUPPORT)

    assert "CURRENT STAGE: Support Mode" in prompt
    assert "CURRENT PLAN CONTEXT" not in prompt
    assert "and is available" not in prompt


def test_plan_generation_stage_asks_for_business_plan_tool():
    prompt = build_system_prompt(
        CoachType.MARKETING, CoachingStyle.STRATEGIST, CoachingStage.PLAN_GENERATION
    )

    assert "generate_business_plan" in prompt


def test_revision_prompt_embeds_outline_and_feedback():
    outline = ProjectOutline.model_validate(outline_input()["outline"])

    prompt = build_revision_prompt(outline, "Add a pricing section")

    assert '"Add a pricing section"' in prompt
    embedded = prompt.split("Current outline:\n", 1)[1].split("\n\nPlease revise", 1)[0]
    assert json.loads(embedded)["sections"][0]["keyElements"] == ["Headline", "CTA"]
