"""
Conversation Context

Per-session running state: message history plus the inferred conversation
phase and action bookkeeping.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ConversationPhase(Enum):
    INITIATION = "initiation"
    ANALYSIS = "analysis"
    PLANNING = "planning"
    EXECUTION = "execution"
    REVIEW = "review"
    COMPLETION = "completion"


class MessageRole(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationMessage:
    role: MessageRole
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


@dataclass
class ConversationState:
    phase: ConversationPhase = ConversationPhase.INITIATION
    current_task: Optional[str] = None
    pending_actions: List[str] = field(default_factory=list)
    completed_actions: List[str] = field(default_factory=list)
    working_memory: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "current_task": self.current_task,
            "pending_actions": self.pending_actions,
            "completed_actions": self.completed_actions,
            "working_memory": self.working_memory,
        }


@dataclass
class ConversationContext:
    """History and state of one conversation session."""

    type: str = "general"
    id: Optional[str] = None
    history: List[ConversationMessage] = field(default_factory=list)
    state: ConversationState = field(default_factory=ConversationState)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def last_activity(self) -> datetime:
        """Timestamp of the latest message, or creation time when empty."""
        if self.history:
            return self.history[-1].timestamp
        return self.created_at

    def add_message(
        self,
        role: MessageRole,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ConversationMessage:
        message = ConversationMessage(role=role, content=content, metadata=metadata or {})
        self.history.append(message)
        return message

    def recent_history(self, limit: int = 10) -> str:
        return "\n".join(
            f"{msg.role.value}: {msg.content}" for msg in self.history[-limit:]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "history": [msg.to_dict() for msg in self.history],
            "state": self.state.to_dict(),
            "created_at": self.created_at.isoformat(),
        }
