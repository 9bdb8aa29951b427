"""
Planner Agent Library

Conversational task planning: RTF parsing, action-plan synthesis,
Statement of Work generation and plan execution tracking.
"""

from .action_plan import ActionPlan, ActionPlanStep, ActionPlanSynthesizer, StepType
from .context import ConversationContext, ConversationPhase
from .conversation import ConversationManager
from .errors import (
    ConversationNotFoundError,
    PlannerError,
    PlanNotFoundError,
    PlanValidationError,
)
from .executor import ExecutionEvent, ExecutionResult, default_step_handlers
from .plan import ExecutionStep, Plan, PlanStatus, StepStatus
from .planner import PlannerAgent, PlanStatusView
from .registry import ConversationRegistry, PlanRegistry
from .rtf import RTFStructure
from .rtf_parser import RTFParser
from .sow import SOWDocument, SOWOptions
from .sow_generator import SOWGenerator

__all__ = [
    "ActionPlan",
    "ActionPlanStep",
    "ActionPlanSynthesizer",
    "ConversationContext",
    "ConversationManager",
    "ConversationNotFoundError",
    "ConversationPhase",
    "ConversationRegistry",
    "ExecutionEvent",
    "ExecutionResult",
    "ExecutionStep",
    "Plan",
    "PlanNotFoundError",
    "PlanRegistry",
    "PlanStatus",
    "PlanStatusView",
    "PlanValidationError",
    "PlannerAgent",
    "PlannerError",
    "RTFParser",
    "RTFStructure",
    "SOWDocument",
    "SOWGenerator",
    "SOWOptions",
    "StepStatus",
    "StepType",
    "default_step_handlers",
]
