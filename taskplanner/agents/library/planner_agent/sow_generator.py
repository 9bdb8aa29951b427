"""
SOW Generator

Builds a Statement of Work from an RTF structure. The model drafts scope
and deliverables; timeline, resources, budget and risk levels are derived
locally so the numbers stay consistent with the PERT estimates.
"""

import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import Field, field_validator

from taskplanner.core import CompletionFn
from taskplanner.utils.json_utils import extract_json_object, to_prompt_json

from .fields import SchemaModel, Text, coerce_records
from .prompts import EFFORT_PROMPT, RISK_PROMPT, SOW_PROMPT
from .rtf import Complexity, RTFStructure
from .sow import (
    BudgetEstimate,
    BudgetItem,
    ContingencyPlan,
    EffortEstimate,
    HumanResource,
    MitigationStrategy,
    ProjectTimeline,
    ResourceEstimate,
    ResourcePlan,
    Risk,
    RiskAssessment,
    RiskLevel,
    SOWDeliverable,
    SOWDocument,
    SOWMetadata,
    SOWMilestone,
    SOWOptions,
    SOWScope,
    SuccessCriterion,
    TechnicalResource,
    TimelinePhase,
    overall_risk_level,
)

logger = logging.getLogger(__name__)

WORKING_HOURS_PER_DAY = 6
RISK_BUFFER_RATE = 0.15

BASE_HOURS = {
    Complexity.SIMPLE: 8,
    Complexity.MODERATE: 20,
    Complexity.COMPLEX: 50,
    Complexity.VERY_COMPLEX: 120,
}


def base_hours_for(complexity: Union[Complexity, str]) -> float:
    try:
        return BASE_HOURS[Complexity(complexity)]
    except ValueError:
        return BASE_HOURS[Complexity.MODERATE]


def _ceil_percent(days: int, percent: int) -> int:
    # integer ceil(days * percent / 100), free of float rounding
    return -(-days * percent // 100)


class _DraftSOW(SchemaModel):
    id: Text = ""
    title: Text = ""
    description: Text = ""
    scope: Optional[SOWScope] = None
    deliverables: List[SOWDeliverable] = Field(default_factory=list)

    @field_validator("scope", mode="before")
    @classmethod
    def _scope(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, SOWScope)) else None

    @field_validator("deliverables", mode="before")
    @classmethod
    def _deliverables(cls, value: Any) -> List[Any]:
        return coerce_records(value)


class SOWGenerator:
    """Generates Statements of Work with PERT estimates, risks and budgets."""

    def __init__(
        self,
        complete: CompletionFn,
        hourly_rate: float = 150.0,
        currency: str = "USD",
    ):
        self.complete = complete
        self.hourly_rate = hourly_rate
        self.currency = currency

    def _resolve_options(
        self, options: Union[SOWOptions, Mapping[str, Any], None]
    ) -> SOWOptions:
        if isinstance(options, SOWOptions):
            return options
        if options is not None and not isinstance(options, Mapping):
            logger.warning("Ignoring SOW options of type %s", type(options).__name__)
            return SOWOptions()
        return SOWOptions.model_validate(dict(options or {}))

    async def generate_sow(
        self,
        rtf: RTFStructure,
        options: Union[SOWOptions, Mapping[str, Any], None] = None,
    ) -> SOWDocument:
        """Generate a SOW; any drafting failure yields the fallback SOW."""
        opts = self._resolve_options(options)
        prompt = SOW_PROMPT.format(
            rtf=to_prompt_json(rtf.to_payload()),
            options=to_prompt_json(opts.to_payload()),
        )
        try:
            payload = extract_json_object(await self.complete(prompt))
            draft = _DraftSOW.model_validate(payload)
        except Exception as e:
            logger.warning("Failed to generate SOW, using fallback: %s", e)
            return self.generate_fallback_sow(rtf, opts)

        return await self._enhance_sow(draft, rtf, opts)

    async def _enhance_sow(
        self, draft: _DraftSOW, rtf: RTFStructure, options: SOWOptions
    ) -> SOWDocument:
        deliverables = self._estimate_deliverables(draft.deliverables, rtf)
        hourly_rate = options.hourly_rate or self.hourly_rate
        currency = options.currency or self.currency

        timeline = self.generate_timeline(deliverables)
        resources = self.generate_resource_plan(deliverables, hourly_rate)
        risk_assessment = await self.analyze_risks(rtf, timeline, resources)
        budget = self.generate_budget_estimate(
            deliverables, resources, hourly_rate, currency
        )

        task = rtf.task
        return SOWDocument(
            id=draft.id or f"sow_{uuid.uuid4().hex[:12]}",
            title=draft.title or options.project_name or task.description,
            description=draft.description or task.description,
            scope=draft.scope
            or SOWScope(
                overview=task.description,
                objectives=[task.expected_outcome],
                inclusions=task.requirements,
                exclusions=[],
                boundaries=task.constraints,
            ),
            deliverables=deliverables,
            timeline=timeline,
            resources=resources,
            risk_assessment=risk_assessment,
            assumptions=[
                "Requirements are well-defined and stable",
                "Resources are available as planned",
                "No major external dependencies",
            ],
            constraints=task.constraints,
            success_criteria=[
                SuccessCriterion(
                    category="scope",
                    description="All deliverables completed as specified",
                    metrics=["Deliverable completion rate"],
                    target="100%",
                    measurement="Binary completion check",
                ),
                SuccessCriterion(
                    category="quality",
                    description="Quality standards met",
                    metrics=["Review approval rate"],
                    target="95%",
                    measurement="Stakeholder approval",
                ),
            ],
            budget=budget,
            metadata=SOWMetadata(template=options.template or "standard"),
        )

    def _estimate_deliverables(
        self, deliverables: List[SOWDeliverable], rtf: RTFStructure
    ) -> List[SOWDeliverable]:
        """Give every deliverable an id and a usable effort estimate."""
        base_hours = base_hours_for(rtf.metadata.complexity)
        if not deliverables:
            deliverables = [
                SOWDeliverable(
                    name="Primary Deliverable",
                    description=rtf.task.expected_outcome,
                    priority="high",
                )
            ]

        estimated = []
        for index, deliverable in enumerate(deliverables, start=1):
            effort = deliverable.estimated_effort
            if effort is None or effort.is_empty:
                effort = EffortEstimate.from_base_hours(base_hours)
            estimated.append(
                deliverable.model_copy(
                    update={
                        "id": deliverable.id or f"deliverable_{index}",
                        "estimated_effort": effort,
                    }
                )
            )
        return estimated

    async def generate_effort_estimate(
        self,
        task: str,
        complexity: Union[Complexity, str],
        context: Optional[Mapping[str, Any]] = None,
    ) -> EffortEstimate:
        """PERT estimate for a single task, falling back to complexity baselines."""
        prompt = EFFORT_PROMPT.format(
            task=task,
            complexity=str(complexity),
            context=to_prompt_json(dict(context or {})),
        )
        try:
            payload = extract_json_object(await self.complete(prompt))
            estimate = EffortEstimate.model_validate(payload)
            if estimate.is_empty:
                raise ValueError("Effort estimate has no hours.")
            return estimate
        except Exception as e:
            logger.warning("Failed to generate effort estimate, using baseline: %s", e)
            return EffortEstimate.from_base_hours(base_hours_for(complexity))

    def generate_timeline(
        self,
        deliverables: List[SOWDeliverable],
        start_date: Optional[datetime] = None,
    ) -> ProjectTimeline:
        total_hours = sum(d.expected_hours for d in deliverables)
        duration_days = math.ceil(total_hours / WORKING_HOURS_PER_DAY)
        start = start_date or datetime.now()
        analysis_end = start + timedelta(days=_ceil_percent(duration_days, 20))
        execution_end = start + timedelta(days=_ceil_percent(duration_days, 80))
        end = start + timedelta(days=duration_days)

        return ProjectTimeline(
            start_date=start,
            end_date=end,
            duration_days=duration_days,
            total_duration=f"{duration_days} days",
            phases=[
                TimelinePhase(
                    id="analysis",
                    name="Analysis & Planning",
                    description="Understand requirements and plan approach",
                    start_date=start,
                    end_date=analysis_end,
                    deliverables=["analysis_document"],
                    resources=["analyst"],
                ),
                TimelinePhase(
                    id="execution",
                    name="Execution",
                    description="Create deliverables according to plan",
                    start_date=analysis_end,
                    end_date=execution_end,
                    deliverables=[d.id for d in deliverables],
                    dependencies=["analysis"],
                    resources=["developer", "designer"],
                ),
                TimelinePhase(
                    id="review",
                    name="Review & Finalization",
                    description="Review deliverables and finalize",
                    start_date=execution_end,
                    end_date=end,
                    deliverables=["final_review"],
                    dependencies=["execution"],
                    resources=["reviewer"],
                ),
            ],
            critical_path=["analysis", "execution", "review"],
            buffer_time=f"{_ceil_percent(duration_days, 10)} days",
        )

    def generate_resource_plan(
        self, deliverables: List[SOWDeliverable], hourly_rate: Optional[float] = None
    ) -> ResourcePlan:
        rate = hourly_rate or self.hourly_rate
        total_hours = sum(d.expected_hours for d in deliverables)
        technical = [
            TechnicalResource(
                name="AI Platform Access",
                type="service",
                description="Access to AI models and processing",
                cost=100,
                duration="project duration",
            )
        ]
        labor = total_hours * rate
        tools = sum(r.cost for r in technical)
        return ResourcePlan(
            human_resources=[
                HumanResource(
                    role="Project Lead",
                    skills_required=["project management", "communication"],
                    effort_required=EffortEstimate(
                        optimistic=round(total_hours * 0.1),
                        most_likely=round(total_hours * 0.15),
                        pessimistic=round(total_hours * 0.2),
                        confidence="high",
                    ),
                    availability="part-time",
                )
            ],
            technical_resources=technical,
            external_resources=[],
            total_estimate=ResourceEstimate(
                total_hours=total_hours,
                total_cost=labor + tools,
                breakdown={"labor": labor, "tools": tools, "external": 0.0},
            ),
        )

    async def analyze_risks(
        self,
        rtf: RTFStructure,
        timeline: ProjectTimeline,
        resources: ResourcePlan,
    ) -> RiskAssessment:
        """Model-driven risk analysis; scores and overall level are recomputed."""
        prompt = RISK_PROMPT.format(
            rtf=to_prompt_json(rtf.to_payload()),
            timeline=to_prompt_json(timeline.to_payload()),
            resources=to_prompt_json(resources.to_payload()),
        )
        try:
            payload = extract_json_object(await self.complete(prompt))
            assessment = RiskAssessment.model_validate(payload)
        except Exception as e:
            logger.warning("Failed to analyze risks, using generic assessment: %s", e)
            return self._fallback_risk_assessment()

        assessment.overall_risk_level = overall_risk_level(assessment.risks)
        return assessment

    @staticmethod
    def _fallback_risk_assessment() -> RiskAssessment:
        return RiskAssessment(
            risks=[
                Risk(
                    id="generic_risk",
                    category="schedule",
                    description="Project may take longer than estimated",
                    probability=0.4,
                    impact=0.6,
                    triggers=["Unclear requirements", "Resource constraints"],
                    indicators=["Missed early milestones", "Scope creep"],
                )
            ],
            mitigation_strategies=[
                MitigationStrategy(
                    risk_id="generic_risk",
                    strategy="Regular progress reviews and scope management",
                    actions=["Weekly progress check-ins", "Clear scope documentation"],
                    responsible_party="Project Manager",
                    timeline="Throughout project",
                    cost=0,
                )
            ],
            contingency_plans=[
                ContingencyPlan(
                    trigger="Schedule delay > 20%",
                    description="Escalate and reassess scope",
                    actions=[
                        "Stakeholder meeting",
                        "Scope prioritization",
                        "Resource reallocation",
                    ],
                    resources=["Additional team members", "Management attention"],
                    impact="Potential scope reduction or timeline extension",
                )
            ],
            overall_risk_level=RiskLevel.MEDIUM,
        )

    def generate_budget_estimate(
        self,
        deliverables: List[SOWDeliverable],
        resources: ResourcePlan,
        hourly_rate: Optional[float] = None,
        currency: Optional[str] = None,
    ) -> BudgetEstimate:
        rate = hourly_rate or self.hourly_rate
        total_hours = sum(d.expected_hours for d in deliverables)
        labor_cost = total_hours * rate
        tool_cost = resources.tool_cost
        external_cost = resources.external_cost
        subtotal = labor_cost + tool_cost + external_cost
        risk_buffer = subtotal * RISK_BUFFER_RATE

        return BudgetEstimate(
            total_cost=subtotal + risk_buffer,
            breakdown=[
                BudgetItem(
                    name="Labor",
                    cost=labor_cost,
                    description=f"{total_hours:g} hours at {rate:g}/hour",
                    confidence="medium",
                ),
                BudgetItem(
                    name="Tools & Software",
                    cost=tool_cost,
                    description="Technical resources and tools",
                    confidence="high",
                ),
                BudgetItem(
                    name="External Services",
                    cost=external_cost,
                    description="Third-party services and consultants",
                    confidence="medium",
                ),
                BudgetItem(
                    name="Risk Buffer",
                    cost=risk_buffer,
                    description="15% contingency for unforeseen costs",
                    confidence="high",
                ),
            ],
            assumptions=[
                f"Hourly rate: {rate:g} {currency or self.currency}",
                "15% risk buffer applied",
                "No major scope changes assumed",
            ],
            risk_buffer=risk_buffer,
            currency=currency or self.currency,
        )

    def generate_fallback_sow(
        self,
        rtf: RTFStructure,
        options: Union[SOWOptions, Mapping[str, Any], None] = None,
    ) -> SOWDocument:
        """Deterministic minimal SOW used when drafting fails."""
        opts = self._resolve_options(options)
        task = rtf.task
        now = datetime.now()
        week_out = now + timedelta(weeks=1)

        deliverables = [
            SOWDeliverable(
                id="main_deliverable",
                name="Primary Deliverable",
                description=task.expected_outcome,
                type="other",
                priority="high",
                acceptance_criteria=["Meets stated requirements"],
                estimated_effort=EffortEstimate(
                    optimistic=10, most_likely=20, pessimistic=35, confidence="low"
                ),
                milestones=[
                    SOWMilestone(
                        id="completion",
                        name="Completion",
                        description="Deliverable completed",
                        date=week_out,
                        criteria=["Work completed"],
                    )
                ],
            )
        ]
        resources = ResourcePlan(
            total_estimate=ResourceEstimate(
                total_hours=deliverables[0].expected_hours,
                total_cost=deliverables[0].expected_hours
                * (opts.hourly_rate or self.hourly_rate),
            )
        )

        return SOWDocument(
            id=f"sow_{uuid.uuid4().hex[:12]}",
            title=opts.project_name or task.description,
            description=task.description,
            scope=SOWScope(
                overview=task.description,
                objectives=[task.expected_outcome],
                inclusions=task.requirements,
                exclusions=["Items not explicitly mentioned"],
                boundaries=task.constraints,
            ),
            deliverables=deliverables,
            timeline=ProjectTimeline(
                start_date=now,
                end_date=week_out,
                duration_days=7,
                total_duration="1 week",
                buffer_time="1 day",
            ),
            resources=resources,
            risk_assessment=RiskAssessment(overall_risk_level=RiskLevel.MEDIUM),
            assumptions=["Basic assumptions apply"],
            constraints=task.constraints,
            success_criteria=[
                SuccessCriterion(
                    category="scope",
                    description="Task completed",
                    metrics=["Completion"],
                    target="100%",
                    measurement="Binary",
                )
            ],
            budget=self.generate_budget_estimate(
                deliverables, resources, opts.hourly_rate, opts.currency
            ),
            metadata=SOWMetadata(template="fallback"),
        )


def sow_options_from_context(
    title: str, context: Optional[Mapping[str, Any]], template: str
) -> Dict[str, Any]:
    """SOW options assembled from a create-plan context."""
    context = context or {}
    return {
        "project_name": title,
        "stakeholders": context.get("stakeholders"),
        "budget": context.get("budget"),
        "timeline": context.get("timeline"),
        "template": template,
    }
