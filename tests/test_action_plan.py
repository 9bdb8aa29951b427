import pytest
from pydantic import ValidationError

from conftest import ScriptedCompletion
from taskplanner.agents.library.planner_agent.action_plan import (
    ActionPlan,
    ActionPlanStep,
    ActionPlanSynthesizer,
    StepType,
    normalize_steps,
    parse_time_estimate,
)
from taskplanner.agents.library.planner_agent.rtf import RTFStructure


@pytest.mark.parametrize(
    "value, hours",
    [
        ("2 hours", 2.0),
        ("1 hour", 1.0),
        ("1.5 hours", 1.5),
        ("3 days", 24.0),
        ("a day", 8.0),
        ("2 weeks", 80.0),
        ("5", 5.0),
        (4, 4.0),
        ("soon", 1.0),
        (None, 1.0),
    ],
)
def test_parse_time_estimate(value, hours):
    assert parse_time_estimate(value) == hours


@pytest.mark.asyncio
async def test_synthesize_builds_steps_with_resolved_prerequisites(complete):
    plan = await ActionPlanSynthesizer(complete).synthesize(RTFStructure.fallback("x"))

    assert [s.id for s in plan.steps] == ["research", "draft", "review"]
    assert [s.type for s in plan.steps] == [
        StepType.RESEARCH,
        StepType.CREATION,
        StepType.REVIEW,
    ]
    assert plan.steps[1].estimated_time == 16.0
    # referenced by name in the payload
    assert plan.steps[2].prerequisites == ["draft"]
    assert plan.resources[0].name == "LaTeX"
    assert plan.risk_assessment[0].type == "timeline"
    assert plan.total_hours == 23.0


@pytest.mark.asyncio
async def test_synthesize_falls_back_to_initial_analysis(failing_complete):
    plan = await ActionPlanSynthesizer(failing_complete).synthesize(
        RTFStructure.fallback("x")
    )

    assert len(plan.steps) == 1
    step = plan.steps[0]
    assert step.name == "Initial Analysis"
    assert step.type == StepType.ANALYSIS
    assert step.estimated_time == 1.0
    assert step.prerequisites == []
    assert step.tools == ["AI Assistant"]
    assert plan.resources[0].type == "tool"
    assert plan.risk_assessment[0].type == "timeline"


@pytest.mark.asyncio
async def test_synthesize_with_no_steps_uses_fallback():
    complete = ScriptedCompletion({ScriptedCompletion.ACTION_PLAN: {"steps": []}})
    plan = await ActionPlanSynthesizer(complete).synthesize(RTFStructure.fallback("x"))

    assert [s.name for s in plan.steps] == ["Initial Analysis"]


def test_normalize_steps_assigns_ids_and_drops_bad_references():
    steps = normalize_steps(
        [
            {"name": "Collect data", "prerequisites": ["Analyse", "ghost"]},
            {"id": "a", "name": "Analyse", "prerequisites": ["a", "Collect data"]},
            {"id": "a", "name": "Write up", "prerequisites": "a"},
        ]
    )

    assert [s["id"] for s in steps] == ["step_1", "a", "step_3"]
    assert steps[0]["prerequisites"] == ["a"]
    assert steps[1]["prerequisites"] == ["step_1"]
    assert steps[2]["prerequisites"] == ["a"]


def test_unknown_step_type_becomes_analysis():
    step = ActionPlanStep.model_validate({"id": "s", "type": "brainstorm"})
    assert step.type == StepType.ANALYSIS


def test_action_plan_steps_are_immutable():
    step = ActionPlan.fallback().steps[0]
    with pytest.raises(ValidationError):
        step.name = "Changed"
