"""
Plan Object and Execution Steps

Aggregate tracking an action plan's execution end to end. Plans are owned
by a PlanRegistry and mutated only through the planner's refine and execute
operations.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .action_plan import ActionPlanStep, StepType
from .rtf import RTFStructure
from .sow import SOWDocument


class PlanStatus(Enum):
    """Status of a plan."""

    DRAFT = "draft"
    APPROVED = "approved"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StepStatus(Enum):
    """Status of individual execution steps."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


@dataclass
class ExecutionStep:
    """Action plan step annotated with mutable execution status."""

    # Core step information
    id: str
    name: str
    description: str
    type: StepType = StepType.ANALYSIS
    estimated_time: float = 1.0  # hours

    # Dependencies and outputs
    prerequisites: List[str] = field(default_factory=list)  # step ids
    deliverables: List[str] = field(default_factory=list)
    tools: List[str] = field(default_factory=list)
    validation_criteria: List[str] = field(default_factory=list)

    # Execution tracking
    status: StepStatus = StepStatus.PENDING
    error: Optional[str] = None
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_action_step(cls, step: ActionPlanStep) -> "ExecutionStep":
        return cls(
            id=step.id,
            name=step.name,
            description=step.description,
            type=step.type,
            estimated_time=step.estimated_time,
            prerequisites=list(step.prerequisites),
            deliverables=[step.deliverable] if step.deliverable else [],
            tools=list(step.tools),
            validation_criteria=list(step.validation_criteria),
        )

    def set_status(self, status: StepStatus, error: Optional[str] = None):
        self.status = status
        self.error = error
        self.updated_at = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert step to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "estimated_time": self.estimated_time,
            "prerequisites": self.prerequisites,
            "deliverables": self.deliverables,
            "tools": self.tools,
            "validation_criteria": self.validation_criteria,
            "status": self.status.value,
            "error": self.error,
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class Refinement:
    """Feedback applied to a plan after creation."""

    feedback: str
    rtf: RTFStructure
    session_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feedback": self.feedback,
            "intent": self.rtf.task.intent,
            "requirements": self.rtf.task.requirements,
            "constraints": self.rtf.task.constraints,
            "fallback": self.rtf.is_fallback,
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Plan:
    """Trackable task plan built from an RTF structure."""

    # Core plan information
    rtf_structure: RTFStructure
    plan_id: str = field(default_factory=lambda: f"plan_{uuid.uuid4().hex[:12]}")
    title: str = "Task Plan"
    description: str = ""

    # Plan structure
    execution_plan: List[ExecutionStep] = field(default_factory=list)
    sow_document: Optional[SOWDocument] = None

    # Execution state
    status: PlanStatus = PlanStatus.DRAFT

    # Context and metadata
    session_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    # History
    refinements: List[Refinement] = field(default_factory=list)
    execution_log: List[Dict[str, Any]] = field(default_factory=list)

    def touch(self):
        self.updated_at = datetime.now()

    def get_step(self, step_id: str) -> Optional[ExecutionStep]:
        """Get step by ID."""
        for step in self.execution_plan:
            if step.id == step_id:
                return step
        return None

    def prerequisites_met(self, step: ExecutionStep) -> bool:
        """True when every prerequisite of ``step`` is completed."""
        for prereq_id in step.prerequisites:
            prereq = self.get_step(prereq_id)
            if not prereq or prereq.status != StepStatus.COMPLETED:
                return False
        return True

    def get_next_step(self) -> Optional[ExecutionStep]:
        """First pending step whose prerequisites are all completed."""
        for step in self.execution_plan:
            if step.status == StepStatus.PENDING and self.prerequisites_met(step):
                return step
        return None

    def get_blocked_steps(self) -> List[ExecutionStep]:
        return [s for s in self.execution_plan if s.status == StepStatus.BLOCKED]

    def get_completed_steps(self) -> List[ExecutionStep]:
        return [s for s in self.execution_plan if s.status == StepStatus.COMPLETED]

    def get_progress(self) -> float:
        """Completed/total ratio, 0 for a plan without steps."""
        total_steps = len(self.execution_plan)
        if not total_steps:
            return 0.0
        return len(self.get_completed_steps()) / total_steps

    def is_complete(self) -> bool:
        return bool(self.execution_plan) and all(
            step.status == StepStatus.COMPLETED for step in self.execution_plan
        )

    def validate(self) -> List[str]:
        """Validate the prerequisite graph and return any errors."""
        errors = []

        # Check for circular dependencies
        for step_id in self._cyclic_step_ids():
            errors.append(f"Circular dependency detected for step {step_id}")

        # Check that all dependencies exist
        step_ids = {step.id for step in self.execution_plan}
        for step in self.execution_plan:
            for prereq_id in step.prerequisites:
                if prereq_id not in step_ids:
                    errors.append(
                        f"Step {step.id} depends on non-existent step {prereq_id}"
                    )

        return errors

    def _cyclic_step_ids(self) -> List[str]:
        """Ids of steps on, or downstream of, a prerequisite cycle.

        Kahn's algorithm: whatever cannot be peeled off in topological
        order is stuck behind a cycle. Unknown prerequisites are ignored here.
        """
        step_ids = {step.id for step in self.execution_plan}
        unmet: Dict[str, set] = {
            step.id: {p for p in step.prerequisites if p in step_ids}
            for step in self.execution_plan
        }
        dependents: Dict[str, List[str]] = {step_id: [] for step_id in step_ids}
        for step_id, prereqs in unmet.items():
            for prereq_id in prereqs:
                dependents[prereq_id].append(step_id)

        ready = [step_id for step_id, prereqs in unmet.items() if not prereqs]
        while ready:
            done = ready.pop()
            for dependent in dependents[done]:
                unmet[dependent].discard(done)
                if not unmet[dependent]:
                    ready.append(dependent)

        return [step.id for step in self.execution_plan if unmet[step.id]]

    def add_log_entry(self, entry_type: str, message: str, step_id: str = None):
        """Add entry to execution log."""
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "type": entry_type,
            "message": message,
            "step_id": step_id,
        }
        self.execution_log.append(log_entry)

    def to_dict(self) -> Dict[str, Any]:
        """Convert plan to dictionary."""
        return {
            "plan_id": self.plan_id,
            "title": self.title,
            "description": self.description,
            "rtf_structure": self.rtf_structure.to_payload(),
            "sow_document": self.sow_document.to_payload()
            if self.sow_document
            else None,
            "execution_plan": [step.to_dict() for step in self.execution_plan],
            "status": self.status.value,
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "progress": self.get_progress(),
            "refinements": [r.to_dict() for r in self.refinements],
            "execution_log": self.execution_log,
        }

    def to_json(self) -> str:
        """Convert plan to JSON string."""
        return json.dumps(self.to_dict(), indent=2)
