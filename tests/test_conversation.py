from datetime import datetime, timedelta

import pytest

from conftest import ScriptedCompletion
from taskplanner.agents.library.planner_agent.context import (
    ConversationPhase,
    MessageRole,
)
from taskplanner.agents.library.planner_agent.conversation import (
    FALLBACK_REPLY,
    ConversationManager,
)
from taskplanner.agents.library.planner_agent.errors import ConversationNotFoundError


@pytest.mark.asyncio
async def test_initialize_with_message_greets(complete):
    manager = ConversationManager(complete)
    context = await manager.initialize_conversation("s1", "paper", "Help me write")

    assert [m.role for m in context.history] == [MessageRole.USER, MessageRole.ASSISTANT]
    assert context.history[1].content.startswith("Happy to help")
    assert context.history[1].metadata["phase"] == "initiation"
    assert manager.get_conversation_context("s1") is context


@pytest.mark.asyncio
async def test_initialize_without_message_is_silent(complete):
    manager = ConversationManager(complete)
    context = await manager.initialize_conversation("s1")

    assert context.history == []
    assert context.type == "general"
    assert complete.prompts == []


@pytest.mark.asyncio
async def test_process_message_updates_state(complete):
    manager = ConversationManager(complete)
    await manager.initialize_conversation("s1", "paper")

    reply = await manager.process_message("s1", "Let's plan the outline")

    state = manager.get_conversation_context("s1").state
    assert reply.role == MessageRole.ASSISTANT
    assert reply.content == "Let's start with an outline."
    assert state.phase == ConversationPhase.PLANNING
    assert state.current_task == "Outline the paper"
    assert state.pending_actions == ["Draft outline", "Collect sources"]
    assert state.working_memory == {"topic": "distributed caching"}


@pytest.mark.asyncio
async def test_completed_actions_move_out_of_pending(complete):
    manager = ConversationManager(complete)
    context = await manager.initialize_conversation("s1")
    context.state.pending_actions = ["Draft outline"]
    complete.responses[ScriptedCompletion.STATE] = {
        "phase": "execution",
        "completedActions": ["Draft outline", "never pending"],
    }

    await manager.process_message("s1", "Outline is done")

    assert context.state.pending_actions == []
    assert context.state.completed_actions == ["Draft outline"]
    assert context.state.phase == ConversationPhase.EXECUTION


@pytest.mark.asyncio
async def test_state_analysis_failure_keeps_state(complete):
    manager = ConversationManager(complete)
    context = await manager.initialize_conversation("s1")
    complete.responses[ScriptedCompletion.STATE] = RuntimeError("boom")

    reply = await manager.process_message("s1", "hello")

    assert context.state.phase == ConversationPhase.INITIATION
    assert reply.content == "Let's start with an outline."


@pytest.mark.asyncio
async def test_unknown_phase_is_ignored(complete):
    manager = ConversationManager(complete)
    context = await manager.initialize_conversation("s1")
    complete.responses[ScriptedCompletion.STATE] = {"phase": "brainstorming"}

    await manager.process_message("s1", "hello")

    assert context.state.phase == ConversationPhase.INITIATION


@pytest.mark.asyncio
async def test_reply_failure_uses_fallback(failing_complete):
    manager = ConversationManager(failing_complete)
    context = await manager.initialize_conversation("s1", "general", "hi")

    reply = await manager.process_message("s1", "anyone there?")

    assert context.history[1].content == FALLBACK_REPLY
    assert reply.content == FALLBACK_REPLY
    assert context.state.phase == ConversationPhase.INITIATION


@pytest.mark.asyncio
async def test_unknown_session_raises(complete):
    manager = ConversationManager(complete)
    with pytest.raises(ConversationNotFoundError):
        await manager.process_message("missing", "hello")


@pytest.mark.asyncio
async def test_history_is_trimmed_keeping_first_message(complete):
    manager = ConversationManager(complete, max_history_length=3)
    context = await manager.initialize_conversation("s1", "general", "first")

    await manager.process_message("s1", "second")

    assert len(context.history) == 3
    assert context.history[0].content == "first"
    assert context.history[1].content == "second"
    assert context.history[2].role == MessageRole.ASSISTANT


@pytest.mark.asyncio
async def test_cleanup_removes_idle_sessions(complete):
    manager = ConversationManager(complete, context_retention=timedelta(hours=1))
    await manager.initialize_conversation("old", "general", "hi")
    await manager.initialize_conversation("empty")

    assert manager.cleanup_expired_conversations() == []

    later = datetime.now() + timedelta(hours=2)
    removed = manager.cleanup_expired_conversations(now=later)

    assert sorted(removed) == ["empty", "old"]
    assert manager.get_conversation_context("old") is None


@pytest.mark.asyncio
async def test_stats(complete):
    manager = ConversationManager(complete)
    await manager.initialize_conversation("a", "paper")
    await manager.initialize_conversation("b", "paper")
    await manager.initialize_conversation("c", "code")
    await manager.process_message("c", "plan it")

    stats = manager.get_stats()

    assert stats["active_conversations"] == 3
    assert stats["conversations_by_type"] == {"paper": 2, "code": 1}
    assert stats["conversations_by_phase"] == {"initiation": 2, "planning": 1}
