"""
Action Plan Synthesis

Expands an RTF structure into dependency-annotated steps, resources and
risks. Steps are frozen once synthesized; re-planning produces new steps.
"""

import logging
import re
from enum import StrEnum
from typing import Annotated, Any, Dict, List

from pydantic import Field, field_validator

from taskplanner.core import CompletionFn
from taskplanner.utils.json_utils import extract_json_object, to_prompt_json

from .fields import FrozenSchemaModel, StrList, Text, coerce_records, lenient_enum
from .prompts import ACTION_PLAN_PROMPT
from .rtf import RTFStructure

logger = logging.getLogger(__name__)


class StepType(StrEnum):
    RESEARCH = "research"
    ANALYSIS = "analysis"
    CREATION = "creation"
    REVIEW = "review"
    COMMUNICATION = "communication"
    TECHNICAL = "technical"


_TIME_UNITS = (("hour", 1), ("day", 8), ("week", 40))
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def parse_time_estimate(value: Any) -> float:
    """Convert a free-text estimate ("2 hours", "3 days") to hours.

    Days count as 8 hours and weeks as 40. Bare numbers are taken as hours;
    anything unrecognised counts as one hour.
    """
    if isinstance(value, bool):
        return 1.0
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else 1.0

    text = str(value or "").strip().lower()
    for unit, hours in _TIME_UNITS:
        if unit in text:
            match = re.search(rf"(\d+(?:\.\d+)?)\s*{unit}", text)
            return float(match.group(1)) * hours if match else float(hours)

    if _NUMBER_RE.fullmatch(text):
        return float(text) or 1.0
    return 1.0


class ActionPlanStep(FrozenSchemaModel):
    id: Text = ""
    name: Text = "Unnamed step"
    description: Text = ""
    type: Annotated[StepType, lenient_enum(StepType, StepType.ANALYSIS)] = (
        StepType.ANALYSIS
    )
    estimated_time: float = 1.0
    prerequisites: StrList = Field(default_factory=list)
    deliverable: Text = ""
    tools: StrList = Field(default_factory=list)
    validation_criteria: StrList = Field(default_factory=list)

    @field_validator("estimated_time", mode="before")
    @classmethod
    def _estimated_time(cls, value: Any) -> float:
        return parse_time_estimate(value)


class PlanResource(FrozenSchemaModel):
    type: Text = "tool"
    name: Text = ""
    description: Text = ""
    availability: Text = "unknown"
    criticality: Text = "helpful"


class ActionRisk(FrozenSchemaModel):
    type: Text = "technical"
    description: Text = ""
    probability: Text = "medium"
    impact: Text = "medium"
    mitigation: Text = ""


class ActionPlan(FrozenSchemaModel):
    """Steps, resources and risks derived from one RTF structure."""

    steps: List[ActionPlanStep] = Field(default_factory=list)
    resources: List[PlanResource] = Field(default_factory=list)
    risk_assessment: List[ActionRisk] = Field(default_factory=list)

    @field_validator("steps", "resources", "risk_assessment", mode="before")
    @classmethod
    def _records(cls, value: Any) -> List[Any]:
        return coerce_records(value)

    @property
    def total_hours(self) -> float:
        return sum(step.estimated_time for step in self.steps)

    @classmethod
    def fallback(cls) -> "ActionPlan":
        return cls(
            steps=[
                ActionPlanStep(
                    id="step_1",
                    name="Initial Analysis",
                    description="Analyze the requirements and plan next steps",
                    type=StepType.ANALYSIS,
                    estimated_time=1.0,
                    deliverable="Analysis report",
                    tools=["AI Assistant"],
                    validation_criteria=["Requirements understood"],
                )
            ],
            resources=[
                PlanResource(
                    type="tool",
                    name="AI Assistant",
                    description="Provides guidance and assistance",
                    availability="available",
                    criticality="essential",
                )
            ],
            risk_assessment=[
                ActionRisk(
                    type="timeline",
                    description="Task may take longer than estimated",
                    probability="medium",
                    impact="medium",
                    mitigation="Break down into smaller steps and reassess regularly",
                )
            ],
        )


def normalize_steps(raw_steps: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Give every step a unique id and rewrite prerequisites to known ids.

    Prerequisites may name a step by id or by name. References to unknown
    steps and self-references are dropped.
    """
    steps: List[Dict[str, Any]] = []
    seen_ids = set()
    for index, raw in enumerate(raw_steps, start=1):
        step = dict(raw)
        step_id = str(step.get("id") or "").strip()
        if not step_id or step_id in seen_ids:
            step_id = f"step_{index}"
            while step_id in seen_ids:
                step_id = f"{step_id}_{index}"
        seen_ids.add(step_id)
        step["id"] = step_id
        steps.append(step)

    by_name = {}
    for step in steps:
        name = str(step.get("name") or "").strip().lower()
        if name:
            by_name.setdefault(name, step["id"])

    for step in steps:
        resolved: List[str] = []
        raw_prereqs = step.get("prerequisites") or []
        if isinstance(raw_prereqs, str):
            raw_prereqs = [raw_prereqs]
        for ref in raw_prereqs:
            ref = str(ref).strip()
            target = ref if ref in seen_ids else by_name.get(ref.lower())
            if target is None:
                logger.warning(
                    "Dropping unknown prerequisite %r of step %s", ref, step["id"]
                )
                continue
            if target == step["id"]:
                logger.warning("Dropping self-reference of step %s", step["id"])
                continue
            if target not in resolved:
                resolved.append(target)
        step["prerequisites"] = resolved
    return steps


class ActionPlanSynthesizer:
    """Turns an RTF structure into an executable action plan."""

    def __init__(self, complete: CompletionFn):
        self.complete = complete

    async def synthesize(self, rtf: RTFStructure) -> ActionPlan:
        """Return an action plan; never raises for model failures.

        The prerequisite graph proposed by the model is not checked for
        cycles here; that happens when the plan is registered.
        """
        prompt = ACTION_PLAN_PROMPT.format(rtf=to_prompt_json(rtf.to_payload()))
        try:
            payload = extract_json_object(await self.complete(prompt))
            plan = self._build_plan(payload)
        except Exception as e:
            logger.warning("Failed to generate action plan, using fallback: %s", e)
            return ActionPlan.fallback()

        if not plan.steps:
            logger.warning("Action plan has no steps, using fallback")
            return ActionPlan.fallback()
        return plan

    @staticmethod
    def _build_plan(payload: Dict[str, Any]) -> ActionPlan:
        raw_steps = [
            step for step in coerce_records(payload.get("steps")) if isinstance(step, dict)
        ]
        data = dict(payload)
        data["steps"] = normalize_steps(raw_steps)
        return ActionPlan.model_validate(data)

