"""
In-memory registries for plans and conversation contexts.

Each planner instance owns its registries, so separate instances (and
tests) never share state.
"""

import asyncio
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from .context import ConversationContext
from .errors import PlanNotFoundError, PlanValidationError
from .plan import Plan

logger = logging.getLogger(__name__)


class PlanRegistry:
    """Plans keyed by id, with one asyncio lock per plan."""

    def __init__(self):
        self._plans: Dict[str, Plan] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def register(self, plan: Plan) -> Plan:
        """Store ``plan`` after checking its prerequisite graph."""
        errors = plan.validate()
        if errors:
            raise PlanValidationError(plan.plan_id, errors)
        self._plans[plan.plan_id] = plan
        logger.debug("Registered plan %s", plan.plan_id)
        return plan

    def get(self, plan_id: str) -> Optional[Plan]:
        return self._plans.get(plan_id)

    def require(self, plan_id: str) -> Plan:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    def remove(self, plan_id: str) -> Optional[Plan]:
        self._locks.pop(plan_id, None)
        return self._plans.pop(plan_id, None)

    def list_plans(self) -> List[Plan]:
        return list(self._plans.values())

    def lock_for(self, plan_id: str) -> asyncio.Lock:
        """Lock serializing mutations of one plan."""
        lock = self._locks.get(plan_id)
        if lock is None:
            lock = self._locks[plan_id] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._plans)

    def __contains__(self, plan_id: object) -> bool:
        return plan_id in self._plans


class ConversationRegistry:
    """Conversation contexts keyed by session id."""

    def __init__(self):
        self._contexts: Dict[str, ConversationContext] = {}

    def create(self, session_id: str, context: ConversationContext) -> ConversationContext:
        self._contexts[session_id] = context
        return context

    def get(self, session_id: str) -> Optional[ConversationContext]:
        return self._contexts.get(session_id)

    def remove(self, session_id: str) -> Optional[ConversationContext]:
        return self._contexts.pop(session_id, None)

    def items(self) -> Iterator[Tuple[str, ConversationContext]]:
        return iter(list(self._contexts.items()))

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._contexts
