"""
Plan Executor

Walks a plan's execution steps in list order, dispatching each step to the
handler registered for its type.
"""

import inspect
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from .action_plan import StepType
from .plan import ExecutionStep, Plan, PlanStatus, StepStatus

logger = logging.getLogger(__name__)

StepHandler = Callable[[ExecutionStep, Plan, Optional[str]], Awaitable[bool]]
NotificationCallback = Callable[[ExecutionStep, str], Any]


class ExecutionEvent(StrEnum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    ERROR = "error"
    BLOCKED = "blocked"


@dataclass
class ExecutionResult:
    success: bool
    completed_steps: List[ExecutionStep] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "completed_steps": [step.id for step in self.completed_steps],
            "errors": self.errors,
        }


def _record_step(step_type: StepType) -> StepHandler:
    async def handler(
        step: ExecutionStep, plan: Plan, session_id: Optional[str] = None
    ) -> bool:
        plan.add_log_entry(
            step_type.value, f"{step_type.value.capitalize()} step: {step.name}", step.id
        )
        return True

    return handler


def default_step_handlers() -> Dict[StepType, StepHandler]:
    """One handler per step type; each records the step and succeeds."""
    return {step_type: _record_step(step_type) for step_type in StepType}


async def _notify(
    callback: Optional[NotificationCallback],
    step: ExecutionStep,
    event: ExecutionEvent,
) -> None:
    if callback is None:
        return
    try:
        result = callback(step, event)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning("Notification callback failed for %s/%s: %s", step.id, event, e)


async def execute_step(
    step: ExecutionStep,
    plan: Plan,
    handlers: Mapping[StepType, StepHandler],
    session_id: Optional[str] = None,
) -> bool:
    handler = handlers.get(step.type)
    if handler is None:
        logger.warning("No handler registered for %s steps", step.type.value)
        return False
    return await handler(step, plan, session_id)


async def run_plan(
    plan: Plan,
    handlers: Mapping[StepType, StepHandler],
    *,
    auto_execute: bool = False,
    notification_callback: Optional[NotificationCallback] = None,
    session_id: Optional[str] = None,
) -> ExecutionResult:
    """Advance ``plan``; stops after the first attempted step unless ``auto_execute``.

    Completed steps are counted and skipped. Steps with unmet prerequisites
    are marked blocked without being attempted and do not end a
    single-step run.
    """
    plan.status = PlanStatus.IN_PROGRESS
    plan.touch()
    completed_steps: List[ExecutionStep] = []
    errors: List[str] = []

    for step in plan.execution_plan:
        if step.status == StepStatus.COMPLETED:
            completed_steps.append(step)
            continue

        if not plan.prerequisites_met(step):
            message = f"Step {step.name} blocked by unmet prerequisites"
            step.set_status(StepStatus.BLOCKED, message)
            errors.append(message)
            plan.add_log_entry("blocked", message, step.id)
            await _notify(notification_callback, step, ExecutionEvent.BLOCKED)
            continue

        step.set_status(StepStatus.IN_PROGRESS)
        await _notify(notification_callback, step, ExecutionEvent.STARTED)
        try:
            success = await execute_step(step, plan, handlers, session_id)
        except Exception as e:
            message = f"Error executing step {step.name}: {e}"
            step.set_status(StepStatus.BLOCKED, message)
            errors.append(message)
            plan.add_log_entry("error", message, step.id)
            logger.warning(message)
            await _notify(notification_callback, step, ExecutionEvent.ERROR)
        else:
            if success:
                step.set_status(StepStatus.COMPLETED)
                completed_steps.append(step)
                await _notify(notification_callback, step, ExecutionEvent.COMPLETED)
            else:
                message = f"Failed to execute step: {step.name}"
                step.set_status(StepStatus.BLOCKED, message)
                errors.append(message)
                plan.add_log_entry("failed", message, step.id)
                logger.warning(message)
                await _notify(notification_callback, step, ExecutionEvent.FAILED)

        if not auto_execute:
            break

    plan.status = PlanStatus.COMPLETED if plan.is_complete() else PlanStatus.IN_PROGRESS
    plan.touch()
    return ExecutionResult(
        success=not errors, completed_steps=completed_steps, errors=errors
    )
