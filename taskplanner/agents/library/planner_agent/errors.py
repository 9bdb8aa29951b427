"""Exceptions raised by the planning pipeline.

Only caller misuse surfaces as an exception (unknown ids, empty input,
unregistrable plans). Language-model failures are recovered locally.
"""

from typing import List


class PlannerError(Exception):
    """Base class for planner errors."""


class PlanNotFoundError(PlannerError, KeyError):
    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Plan not found: {plan_id}")

    def __str__(self) -> str:
        return self.args[0]


class ConversationNotFoundError(PlannerError, KeyError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"No active conversation found for session: {session_id}")

    def __str__(self) -> str:
        return self.args[0]


class PlanValidationError(PlannerError, ValueError):
    def __init__(self, plan_id: str, errors: List[str]):
        self.plan_id = plan_id
        self.errors = list(errors)
        super().__init__(f"Plan {plan_id} is invalid: " + "; ".join(self.errors))
