"""
Conversation Manager

Keeps per-session history and infers the conversation phase from each
message. State analysis never halts a conversation: failures are logged
and the previous state is kept.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from taskplanner.core import CompletionFn
from taskplanner.utils.json_utils import extract_json_object

from .context import (
    ConversationContext,
    ConversationMessage,
    ConversationPhase,
    MessageRole,
)
from .errors import ConversationNotFoundError
from .fields import SchemaModel, StrList, Text
from .prompts import GREETING_PROMPT, REPLY_PROMPT, STATE_ANALYSIS_PROMPT
from .registry import ConversationRegistry

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I apologize, but I encountered an issue generating a response."


class StateUpdate(SchemaModel):
    """State change proposed by the model for one message."""

    phase: Optional[ConversationPhase] = None
    current_task: Text = ""
    new_pending_actions: StrList = Field(default_factory=list)
    completed_actions: StrList = Field(default_factory=list)
    working_memory_updates: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("phase", mode="before")
    @classmethod
    def _phase(cls, value: Any) -> Optional[ConversationPhase]:
        try:
            return ConversationPhase(str(value).strip().lower())
        except ValueError:
            return None

    @field_validator("working_memory_updates", mode="before")
    @classmethod
    def _memory(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}


class ConversationManager:
    """Owns conversation contexts for a planner."""

    def __init__(
        self,
        complete: CompletionFn,
        registry: Optional[ConversationRegistry] = None,
        max_history_length: int = 50,
        context_retention: timedelta = timedelta(hours=24),
    ):
        self.complete = complete
        self.registry = registry if registry is not None else ConversationRegistry()
        self.max_history_length = max_history_length
        self.context_retention = context_retention

    async def initialize_conversation(
        self,
        session_id: str,
        context_type: str = "general",
        initial_message: Optional[str] = None,
        context_id: Optional[str] = None,
    ) -> ConversationContext:
        """Start a session, greeting the user when a first message is given."""
        context = ConversationContext(type=context_type, id=context_id)
        if initial_message:
            context.add_message(MessageRole.USER, initial_message)
            content = await self._generate(
                GREETING_PROMPT.format(
                    context_type=context_type, first_message=initial_message
                )
            )
            context.add_message(
                MessageRole.ASSISTANT,
                content,
                {"context_type": context_type, "phase": context.state.phase.value},
            )
        self.registry.create(session_id, context)
        logger.info("Initialized %s conversation %s", context_type, session_id)
        return context

    async def process_message(
        self,
        session_id: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ConversationMessage:
        """Record a user message and return the assistant's reply."""
        context = self.registry.get(session_id)
        if context is None:
            raise ConversationNotFoundError(session_id)

        context.add_message(MessageRole.USER, message, metadata)
        await self.update_conversation_state(context, message)

        state = context.state
        content = await self._generate(
            REPLY_PROMPT.format(
                context_type=context.type,
                phase=state.phase.value,
                current_task=state.current_task or "None",
                pending_actions=", ".join(state.pending_actions),
                completed_actions=", ".join(state.completed_actions),
                recent_history=context.recent_history(),
            )
        )
        reply = context.add_message(
            MessageRole.ASSISTANT,
            content,
            {
                "context_type": context.type,
                "phase": state.phase.value,
                "current_task": state.current_task,
            },
        )
        self.trim_history(context)
        return reply

    async def update_conversation_state(
        self, context: ConversationContext, message: str
    ) -> None:
        state = context.state
        prompt = STATE_ANALYSIS_PROMPT.format(
            phase=state.phase.value,
            current_task=state.current_task or "None",
            pending_actions=", ".join(state.pending_actions),
            message=message,
            context_type=context.type,
        )
        try:
            update = StateUpdate.model_validate(
                extract_json_object(await self.complete(prompt))
            )
        except Exception as e:
            logger.warning("Failed to update conversation state: %s", e)
            return

        if update.phase is not None:
            state.phase = update.phase
        if update.current_task:
            state.current_task = update.current_task
        state.pending_actions.extend(update.new_pending_actions)
        for action in update.completed_actions:
            if action in state.pending_actions:
                state.pending_actions.remove(action)
                state.completed_actions.append(action)
        state.working_memory.update(update.working_memory_updates)

    async def _generate(self, prompt: str) -> str:
        try:
            text = await self.complete(prompt)
        except Exception as e:
            logger.warning("Failed to generate assistant response: %s", e)
            return FALLBACK_REPLY
        return text.strip() or FALLBACK_REPLY

    def trim_history(self, context: ConversationContext) -> None:
        """Keep the first message plus the most recent window."""
        if len(context.history) <= self.max_history_length:
            return
        keep = self.max_history_length - 1
        recent = context.history[-keep:] if keep > 0 else []
        context.history = [context.history[0], *recent]

    def get_conversation_context(self, session_id: str) -> Optional[ConversationContext]:
        return self.registry.get(session_id)

    def cleanup_expired_conversations(
        self, now: Optional[datetime] = None
    ) -> List[str]:
        """Drop sessions idle for longer than the retention window."""
        now = now or datetime.now()
        expired = [
            session_id
            for session_id, context in self.registry.items()
            if now - context.last_activity > self.context_retention
        ]
        for session_id in expired:
            self.registry.remove(session_id)
        if expired:
            logger.info("Removed %d expired conversations", len(expired))
        return expired

    def get_stats(self) -> Dict[str, Any]:
        by_type: Dict[str, int] = {}
        by_phase: Dict[str, int] = {}
        for _, context in self.registry.items():
            by_type[context.type] = by_type.get(context.type, 0) + 1
            phase = context.state.phase.value
            by_phase[phase] = by_phase.get(phase, 0) + 1
        return {
            "active_conversations": len(self.registry),
            "conversations_by_type": by_type,
            "conversations_by_phase": by_phase,
        }
