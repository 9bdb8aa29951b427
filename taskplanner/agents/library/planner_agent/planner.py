"""
Planner Agent

Facade over the planning pipeline: builds plans from free text, refines
them through conversation, drives their execution and reports status.
Model failures degrade to fallback values; only unknown ids and misuse
raise.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from taskplanner.core import CompletionFn

from .action_plan import ActionPlan, ActionPlanSynthesizer, StepType
from .context import ConversationContext
from .conversation import ConversationManager
from .errors import PlannerError, PlanValidationError
from .executor import (
    ExecutionResult,
    NotificationCallback,
    StepHandler,
    default_step_handlers,
    run_plan,
)
from .plan import ExecutionStep, Plan, PlanStatus, Refinement
from .planner_graph import build_planning_graph
from .registry import PlanRegistry
from .rtf import RTFStructure
from .rtf_parser import RTFParser
from .sow import SOWDocument, SOWOptions
from .sow_generator import SOWGenerator, sow_options_from_context

logger = logging.getLogger(__name__)


@dataclass
class PlanStatusView:
    plan: Optional[Plan] = None
    progress: float = 0.0
    next_step: Optional[ExecutionStep] = None
    blocked_steps: List[ExecutionStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan": self.plan.to_dict() if self.plan else None,
            "progress": self.progress,
            "next_step": self.next_step.to_dict() if self.next_step else None,
            "blocked_steps": [step.to_dict() for step in self.blocked_steps],
        }


def _merge(existing: List[str], new: List[str]) -> List[str]:
    return existing + [item for item in new if item not in existing]


class PlannerAgent:
    """Conversational task planner."""

    def __init__(
        self,
        complete: CompletionFn,
        *,
        rtf_parser: Optional[RTFParser] = None,
        synthesizer: Optional[ActionPlanSynthesizer] = None,
        sow_generator: Optional[SOWGenerator] = None,
        conversation_manager: Optional[ConversationManager] = None,
        plan_registry: Optional[PlanRegistry] = None,
        step_handlers: Optional[Mapping[Union[StepType, str], StepHandler]] = None,
        auto_generate_sow: bool = True,
        enable_conversation_mode: bool = True,
        default_template: str = "standard",
    ):
        self.complete = complete
        self.rtf_parser = rtf_parser or RTFParser(complete)
        self.synthesizer = synthesizer or ActionPlanSynthesizer(complete)
        self.sow_generator = sow_generator or SOWGenerator(complete)
        self.conversation_manager = conversation_manager or ConversationManager(complete)
        self.plan_registry = plan_registry if plan_registry is not None else PlanRegistry()

        self.step_handlers: Dict[StepType, StepHandler] = default_step_handlers()
        for step_type, handler in (step_handlers or {}).items():
            self.step_handlers[StepType(step_type)] = handler

        self.auto_generate_sow = auto_generate_sow
        self.enable_conversation_mode = enable_conversation_mode
        self.default_template = default_template

        self._graph = build_planning_graph(self)

    async def parse_rtf(
        self, input_text: str, context: Optional[Mapping[str, Any]] = None
    ) -> RTFStructure:
        return await self.rtf_parser.parse_rtf(input_text, context)

    async def create_task_plan(
        self, input_text: str, context: Optional[Mapping[str, Any]] = None
    ) -> Plan:
        """Build and register a plan for ``input_text``.

        ``context`` may carry ``session_id``, ``type``, ``stakeholders``,
        ``budget`` and ``timeline``. The returned plan always has at least
        one step.
        """
        if not input_text or not input_text.strip():
            raise ValueError("Input text must be non-empty.")

        context = dict(context or {})
        state = await self._graph.ainvoke(
            {"input_text": input_text, "request_context": context}
        )
        plan: Plan = state["plan"]

        session_id = context.get("session_id")
        if self.enable_conversation_mode and session_id:
            await self.conversation_manager.initialize_conversation(
                session_id, context.get("type") or "general", input_text
            )

        logger.info(
            "Created plan %s (%s) with %d steps",
            plan.plan_id,
            plan.title,
            len(plan.execution_plan),
        )
        return plan

    def plan_title(self, rtf: RTFStructure) -> str:
        task_type = rtf.task.type.value.capitalize()
        intent = rtf.task.intent.replace("_", " ")
        return f"{task_type}: {intent}"

    def _build_plan(
        self,
        rtf: RTFStructure,
        action_plan: ActionPlan,
        sow_document: Optional[SOWDocument],
        session_id: Optional[str],
    ) -> Plan:
        return Plan(
            rtf_structure=rtf,
            title=self.plan_title(rtf),
            description=rtf.task.description,
            execution_plan=[
                ExecutionStep.from_action_step(step) for step in action_plan.steps
            ],
            sow_document=sow_document,
            session_id=session_id,
        )

    def register_plan(
        self,
        rtf: RTFStructure,
        action_plan: ActionPlan,
        sow_document: Optional[SOWDocument],
        context: Mapping[str, Any],
    ) -> Plan:
        """Register a plan, substituting the fallback steps if validation fails."""
        session_id = context.get("session_id")
        plan = self._build_plan(rtf, action_plan, sow_document, session_id)
        try:
            return self.plan_registry.register(plan)
        except PlanValidationError as e:
            logger.warning("%s; registering fallback plan instead", e)
        plan = self._build_plan(rtf, ActionPlan.fallback(), sow_document, session_id)
        return self.plan_registry.register(plan)

    async def refine_plan(
        self, plan_id: str, feedback: str, session_id: Optional[str] = None
    ) -> Plan:
        """Annotate a plan with feedback without regenerating its steps."""
        plan = self.plan_registry.require(plan_id)
        async with self.plan_registry.lock_for(plan_id):
            if session_id and self.enable_conversation_mode:
                manager = self.conversation_manager
                if manager.get_conversation_context(session_id) is None:
                    await manager.initialize_conversation(session_id, "general", feedback)
                else:
                    await manager.process_message(session_id, feedback)

            refinement_rtf = await self.rtf_parser.parse_rtf(
                feedback,
                {"type": "general", "previousMessages": [plan.description]},
            )
            self._apply_refinement(plan, refinement_rtf, feedback, session_id)

        logger.info("Refined plan %s (%d refinements)", plan_id, len(plan.refinements))
        return plan

    def _apply_refinement(
        self,
        plan: Plan,
        refinement_rtf: RTFStructure,
        feedback: str,
        session_id: Optional[str],
    ) -> None:
        plan.refinements.append(
            Refinement(feedback=feedback, rtf=refinement_rtf, session_id=session_id)
        )
        if not refinement_rtf.is_fallback:
            rtf = plan.rtf_structure
            new_task = refinement_rtf.task
            task = rtf.task.model_copy(
                update={
                    "requirements": _merge(rtf.task.requirements, new_task.requirements),
                    "constraints": _merge(rtf.task.constraints, new_task.constraints),
                }
            )
            metadata = rtf.metadata.model_copy(
                update={
                    "keywords": _merge(
                        rtf.metadata.keywords, refinement_rtf.metadata.keywords
                    )
                }
            )
            plan.rtf_structure = rtf.model_copy(
                update={"task": task, "metadata": metadata}
            )
        plan.touch()

    async def execute_plan(
        self,
        plan_id: str,
        *,
        auto_execute: bool = False,
        notification_callback: Optional[NotificationCallback] = None,
        session_id: Optional[str] = None,
    ) -> ExecutionResult:
        """Advance a plan; one step per call unless ``auto_execute``."""
        plan = self.plan_registry.require(plan_id)
        async with self.plan_registry.lock_for(plan_id):
            if plan.status == PlanStatus.CANCELLED:
                return ExecutionResult(
                    success=False, errors=[f"Plan {plan_id} is cancelled"]
                )
            result = await run_plan(
                plan,
                self.step_handlers,
                auto_execute=auto_execute,
                notification_callback=notification_callback,
                session_id=session_id or plan.session_id,
            )

        logger.info(
            "Executed plan %s: %d/%d steps completed, %d errors",
            plan_id,
            len(plan.get_completed_steps()),
            len(plan.execution_plan),
            len(result.errors),
        )
        return result

    def get_plan_status(self, plan_id: str) -> PlanStatusView:
        """Progress view of a plan; unknown ids yield an empty view."""
        plan = self.plan_registry.get(plan_id)
        if plan is None:
            return PlanStatusView()
        return PlanStatusView(
            plan=plan,
            progress=plan.get_progress(),
            next_step=plan.get_next_step(),
            blocked_steps=plan.get_blocked_steps(),
        )

    async def generate_sow(
        self,
        rtf_or_plan: Union[RTFStructure, Plan],
        options: Union[SOWOptions, Mapping[str, Any], None] = None,
    ) -> SOWDocument:
        """Generate a SOW; for a plan, the document is attached to it."""
        if isinstance(rtf_or_plan, Plan):
            plan = rtf_or_plan
            options = options or sow_options_from_context(
                plan.title, None, self.default_template
            )
            async with self.plan_registry.lock_for(plan.plan_id):
                sow = await self.sow_generator.generate_sow(plan.rtf_structure, options)
                plan.sow_document = sow
                plan.touch()
            return sow
        return await self.sow_generator.generate_sow(
            rtf_or_plan, options or {"template": self.default_template}
        )

    def get_conversation_context(self, session_id: str) -> Optional[ConversationContext]:
        return self.conversation_manager.get_conversation_context(session_id)

    def get_active_plans(self) -> List[Plan]:
        return self.plan_registry.list_plans()

    async def approve_plan(self, plan_id: str) -> Plan:
        plan = self.plan_registry.require(plan_id)
        async with self.plan_registry.lock_for(plan_id):
            if plan.status != PlanStatus.DRAFT:
                raise PlannerError(
                    f"Only draft plans can be approved; {plan_id} is {plan.status.value}"
                )
            plan.status = PlanStatus.APPROVED
            plan.touch()
        return plan

    async def cancel_plan(self, plan_id: str) -> Plan:
        plan = self.plan_registry.require(plan_id)
        async with self.plan_registry.lock_for(plan_id):
            if plan.status == PlanStatus.COMPLETED:
                raise PlannerError(f"Plan {plan_id} is already completed")
            plan.status = PlanStatus.CANCELLED
            plan.touch()
        logger.info("Cancelled plan %s", plan_id)
        return plan

    def cleanup_expired_conversations(self, now: Optional[datetime] = None) -> List[str]:
        return self.conversation_manager.cleanup_expired_conversations(now)
