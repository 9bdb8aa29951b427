"""
Statement of Work (SOW) Schemas

Scope, deliverables with PERT estimates, timeline, resources, risk and
budget. Values proposed by the model are repaired on the way in; derived
numbers (PERT expectation, risk score) are always recomputed locally.
"""

import math
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BeforeValidator, Field, field_validator, model_validator

from .fields import (
    Number,
    SchemaModel,
    StrList,
    Text,
    UnitInterval,
    coerce_number,
    coerce_records,
    coerce_text,
    lenient_enum,
)


def pert_expected(optimistic: float, most_likely: float, pessimistic: float) -> float:
    """PERT expectation: (o + 4m + p) / 6."""
    return (optimistic + 4 * most_likely + pessimistic) / 6


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


OptionalDateTime = Annotated[Optional[datetime], BeforeValidator(_coerce_datetime)]


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EffortEstimate(SchemaModel):
    """Three-point effort estimate in hours."""

    optimistic: Number = 0.0
    most_likely: Number = 0.0
    pessimistic: Number = 0.0
    expected: float = 0.0
    confidence: Text = "medium"
    assumptions: StrList = Field(default_factory=list)
    risk_factors: StrList = Field(default_factory=list)

    @model_validator(mode="after")
    def _pert(self) -> "EffortEstimate":
        low, mid, high = sorted(
            max(v, 0.0) for v in (self.optimistic, self.most_likely, self.pessimistic)
        )
        self.optimistic, self.most_likely, self.pessimistic = low, mid, high
        self.expected = pert_expected(low, mid, high)
        return self

    @property
    def is_empty(self) -> bool:
        return self.pessimistic <= 0

    @classmethod
    def from_base_hours(cls, base_hours: float, confidence: str = "low") -> "EffortEstimate":
        return cls(
            optimistic=round(base_hours * 0.7),
            most_likely=base_hours,
            pessimistic=round(base_hours * 1.5),
            confidence=confidence,
        )


class SOWMilestone(SchemaModel):
    id: Text = ""
    name: Text = ""
    description: Text = ""
    date: OptionalDateTime = None
    criteria: StrList = Field(default_factory=list)
    dependencies: StrList = Field(default_factory=list)


class SOWDeliverable(SchemaModel):
    id: Text = ""
    name: Text = "Deliverable"
    description: Text = ""
    type: Text = "other"
    priority: Text = "medium"
    acceptance_criteria: StrList = Field(default_factory=list)
    dependencies: StrList = Field(default_factory=list)
    estimated_effort: Optional[EffortEstimate] = None
    milestones: List[SOWMilestone] = Field(default_factory=list)

    @field_validator("estimated_effort", mode="before")
    @classmethod
    def _effort(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, EffortEstimate)) else None

    @field_validator("milestones", mode="before")
    @classmethod
    def _milestones(cls, value: Any) -> List[Any]:
        return coerce_records(value)

    @property
    def expected_hours(self) -> float:
        return self.estimated_effort.expected if self.estimated_effort else 0.0


class SOWScope(SchemaModel):
    overview: Text = ""
    objectives: StrList = Field(default_factory=list)
    inclusions: StrList = Field(default_factory=list)
    exclusions: StrList = Field(default_factory=list)
    boundaries: StrList = Field(default_factory=list)


class TimelinePhase(SchemaModel):
    id: Text
    name: Text
    description: Text = ""
    start_date: datetime
    end_date: datetime
    deliverables: StrList = Field(default_factory=list)
    dependencies: StrList = Field(default_factory=list)
    resources: StrList = Field(default_factory=list)


class ProjectTimeline(SchemaModel):
    start_date: datetime
    end_date: datetime
    duration_days: int = 0
    total_duration: Text = ""
    phases: List[TimelinePhase] = Field(default_factory=list)
    critical_path: StrList = Field(default_factory=list)
    buffer_time: Text = ""


class HumanResource(SchemaModel):
    role: Text
    skills_required: StrList = Field(default_factory=list)
    effort_required: EffortEstimate = Field(default_factory=EffortEstimate)
    availability: Text = "part-time"


class TechnicalResource(SchemaModel):
    name: Text
    type: Text = "service"
    description: Text = ""
    cost: Number = 0.0
    duration: Text = ""


class ExternalResource(SchemaModel):
    name: Text
    type: Text = "service"
    description: Text = ""
    provider: Text = ""
    cost: Number = 0.0


class ResourceEstimate(SchemaModel):
    total_hours: float = 0.0
    total_cost: float = 0.0
    breakdown: Dict[str, float] = Field(default_factory=dict)


class ResourcePlan(SchemaModel):
    human_resources: List[HumanResource] = Field(default_factory=list)
    technical_resources: List[TechnicalResource] = Field(default_factory=list)
    external_resources: List[ExternalResource] = Field(default_factory=list)
    total_estimate: ResourceEstimate = Field(default_factory=ResourceEstimate)

    @property
    def tool_cost(self) -> float:
        return sum(r.cost for r in self.technical_resources)

    @property
    def external_cost(self) -> float:
        return sum(r.cost for r in self.external_resources)


class Risk(SchemaModel):
    """A project risk; ``risk_score`` is always probability x impact."""

    id: Text = ""
    category: Text = "technical"
    description: Text = ""
    probability: UnitInterval = 0.0
    impact: UnitInterval = 0.0
    risk_score: float = 0.0
    triggers: StrList = Field(default_factory=list)
    indicators: StrList = Field(default_factory=list)

    @model_validator(mode="after")
    def _score(self) -> "Risk":
        self.risk_score = self.probability * self.impact
        return self


class MitigationStrategy(SchemaModel):
    risk_id: Text = ""
    strategy: Text = ""
    actions: StrList = Field(default_factory=list)
    responsible_party: Text = ""
    timeline: Text = ""
    cost: Number = 0.0


class ContingencyPlan(SchemaModel):
    trigger: Text = ""
    description: Text = ""
    actions: StrList = Field(default_factory=list)
    resources: StrList = Field(default_factory=list)
    impact: Text = ""


class RiskAssessment(SchemaModel):
    risks: List[Risk] = Field(default_factory=list)
    mitigation_strategies: List[MitigationStrategy] = Field(default_factory=list)
    contingency_plans: List[ContingencyPlan] = Field(default_factory=list)
    overall_risk_level: Annotated[
        RiskLevel, lenient_enum(RiskLevel, RiskLevel.MEDIUM)
    ] = RiskLevel.MEDIUM

    @field_validator(
        "risks", "mitigation_strategies", "contingency_plans", mode="before"
    )
    @classmethod
    def _records(cls, value: Any) -> List[Any]:
        return coerce_records(value, key="description")


def overall_risk_level(risks: List[Risk]) -> RiskLevel:
    """Bucket a set of risks by their max and average scores."""
    if not risks:
        return RiskLevel.LOW
    scores = [risk.risk_score for risk in risks]
    max_score = max(scores)
    avg_score = sum(scores) / len(scores)
    if max_score > 0.7 or avg_score > 0.5:
        return RiskLevel.CRITICAL
    if max_score > 0.5 or avg_score > 0.3:
        return RiskLevel.HIGH
    if max_score > 0.3 or avg_score > 0.15:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class BudgetItem(SchemaModel):
    name: Text
    cost: float = 0.0
    description: Text = ""
    confidence: Text = "medium"


class BudgetEstimate(SchemaModel):
    total_cost: float = 0.0
    breakdown: List[BudgetItem] = Field(default_factory=list)
    assumptions: StrList = Field(default_factory=list)
    risk_buffer: float = 0.0
    currency: Text = "USD"


class SuccessCriterion(SchemaModel):
    category: Text
    description: Text = ""
    metrics: StrList = Field(default_factory=list)
    target: Text = ""
    measurement: Text = ""


class SOWMetadata(SchemaModel):
    version: Text = "1.0"
    created_date: datetime = Field(default_factory=datetime.now)
    created_by: Text = "AI SOW Generator"
    last_modified: datetime = Field(default_factory=datetime.now)
    status: Text = "draft"
    reviewers: StrList = Field(default_factory=list)
    approvers: StrList = Field(default_factory=list)
    template: Text = "standard"


class SOWDocument(SchemaModel):
    """Complete Statement of Work derived from an RTF structure."""

    id: Text
    title: Text
    description: Text = ""
    scope: SOWScope = Field(default_factory=SOWScope)
    deliverables: List[SOWDeliverable] = Field(default_factory=list)
    timeline: ProjectTimeline
    resources: ResourcePlan = Field(default_factory=ResourcePlan)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    assumptions: StrList = Field(default_factory=list)
    constraints: StrList = Field(default_factory=list)
    success_criteria: List[SuccessCriterion] = Field(default_factory=list)
    budget: BudgetEstimate = Field(default_factory=BudgetEstimate)
    metadata: SOWMetadata = Field(default_factory=SOWMetadata)

    @property
    def total_hours(self) -> float:
        return sum(d.expected_hours for d in self.deliverables)


def _optional_text(value: Any) -> Optional[str]:
    text = coerce_text(value)
    return text or None


def _coerce_budget(value: Any) -> Optional[Union[float, str]]:
    """Keep numeric or free-text budgets; anything else is dropped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


def _coerce_rate(value: Any) -> Optional[float]:
    rate = coerce_number(value) if value is not None else 0.0
    return rate if rate > 0 else None


OptionalText = Annotated[Optional[str], BeforeValidator(_optional_text)]


class SOWOptions(SchemaModel):
    """Caller-supplied knobs for SOW generation."""

    project_name: OptionalText = None
    stakeholders: StrList = Field(default_factory=list)
    budget: Annotated[Optional[Union[float, str]], BeforeValidator(_coerce_budget)] = None
    timeline: OptionalText = None
    template: Text = "standard"
    hourly_rate: Annotated[Optional[float], BeforeValidator(_coerce_rate)] = None
    currency: OptionalText = None
