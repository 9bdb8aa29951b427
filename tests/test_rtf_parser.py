import pytest

from conftest import PAPER_REQUEST, ScriptedCompletion
from taskplanner.agents.library.planner_agent.rtf import (
    Complexity,
    OutputType,
    Priority,
    RTFStructure,
    TaskScope,
    TaskType,
)
from taskplanner.agents.library.planner_agent.rtf_parser import RTFParser


@pytest.mark.asyncio
async def test_paper_request_is_parsed_into_document_rtf(complete):
    rtf = await RTFParser(complete).parse_rtf(PAPER_REQUEST)

    assert rtf.task.type == TaskType.PAPER
    assert rtf.format.output_type == OutputType.DOCUMENT
    assert rtf.confidence > 0.5
    assert rtf.role == "academic writer"
    assert rtf.metadata.complexity == Complexity.COMPLEX
    assert not rtf.is_fallback


@pytest.mark.asyncio
async def test_failing_backend_yields_fallback_rtf(failing_complete):
    rtf = await RTFParser(failing_complete).parse_rtf(PAPER_REQUEST)

    assert rtf.metadata.fallback is True
    assert rtf.task.type == TaskType.GENERAL
    assert rtf.task.description == PAPER_REQUEST
    assert rtf.metadata.keywords == ["Write", "a", "5-page", "IEEE", "paper"]
    assert 0.0 <= rtf.confidence <= 1.0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        "I cannot help with that.",
        "[]",
        '{"task": "not an object", "format": 42, "confidence": "very"}',
        "{}",
    ],
)
async def test_malformed_output_still_yields_populated_rtf(response):
    complete = ScriptedCompletion({ScriptedCompletion.RTF: response})
    rtf = await RTFParser(complete).parse_rtf("Summarize the meeting notes")

    assert rtf.task is not None
    assert rtf.format is not None
    assert 0.0 <= rtf.confidence <= 1.0
    assert rtf.task.description


@pytest.mark.asyncio
async def test_missing_sections_are_repaired_from_input():
    complete = ScriptedCompletion({ScriptedCompletion.RTF: {"role": "", "confidence": 7}})
    rtf = await RTFParser(complete).parse_rtf("Plan a team offsite")

    assert rtf.role == "AI Assistant"
    assert rtf.task.type == TaskType.GENERAL
    assert rtf.task.description == "Plan a team offsite"
    assert rtf.format.output_type == OutputType.CONVERSATION
    assert rtf.confidence == 0.7
    assert not rtf.is_fallback


@pytest.mark.asyncio
async def test_unknown_enum_values_and_synonyms_are_coerced():
    payload = {
        "task": {
            "type": "report",
            "scope": "sprawling",
            "priority": "ASAP",
            "requirements": "single requirement",
            "constraints": None,
            "description": "",
        },
        "format": {"outputType": "slides", "timeline": "3 days"},
        "metadata": {"complexity": "very complex"},
    }
    complete = ScriptedCompletion({ScriptedCompletion.RTF: payload})
    rtf = await RTFParser(complete).parse_rtf("Quarterly report")

    assert rtf.task.type == TaskType.PAPER
    assert rtf.task.scope == TaskScope.SINGLE_ACTION
    assert rtf.task.priority == Priority.MEDIUM
    assert rtf.task.requirements == ["single requirement"]
    assert rtf.task.constraints == []
    assert rtf.task.description == "Quarterly report"
    assert rtf.format.output_type == OutputType.PRESENTATION
    assert rtf.format.timeline.estimated_duration == "3 days"
    assert rtf.metadata.complexity == Complexity.VERY_COMPLEX


@pytest.mark.asyncio
async def test_empty_input_is_rejected(complete):
    parser = RTFParser(complete)
    with pytest.raises(ValueError):
        await parser.parse_rtf("   ")
    assert complete.prompts == []


@pytest.mark.asyncio
async def test_successful_parses_are_cached_per_context(complete):
    parser = RTFParser(complete)

    first = await parser.parse_rtf(PAPER_REQUEST, {"type": "paper"})
    second = await parser.parse_rtf(PAPER_REQUEST, {"type": "paper"})
    await parser.parse_rtf(PAPER_REQUEST, {"type": "project"})

    assert first is second
    assert complete.calls(ScriptedCompletion.RTF) == 2
    stats = parser.get_stats()
    assert stats["rtf_cache_size"] == 2
    assert stats["cache_hits"] == 1
    assert stats["cache_misses"] == 2
    assert stats["cache_hit_rate"] == pytest.approx(1 / 3)


@pytest.mark.asyncio
async def test_fallbacks_are_not_cached():
    complete = ScriptedCompletion({ScriptedCompletion.RTF: RuntimeError("timeout")})
    parser = RTFParser(complete)

    assert (await parser.parse_rtf("Draft an email")).is_fallback
    complete.responses[ScriptedCompletion.RTF] = {"task": {"type": "general"}}
    assert not (await parser.parse_rtf("Draft an email")).is_fallback
    assert complete.calls(ScriptedCompletion.RTF) == 2


@pytest.mark.asyncio
async def test_clear_cache_forces_new_completion(complete):
    parser = RTFParser(complete)
    await parser.parse_rtf(PAPER_REQUEST)
    await parser.parse_intent(PAPER_REQUEST)
    parser.clear_cache()

    assert parser.get_stats()["rtf_cache_size"] == 0
    assert parser.get_stats()["intent_cache_size"] == 0
    await parser.parse_rtf(PAPER_REQUEST)
    assert complete.calls(ScriptedCompletion.RTF) == 2


def test_cache_key_is_independent_of_context_key_order():
    a = RTFParser.generate_cache_key("x", {"a": 1, "b": 2})
    b = RTFParser.generate_cache_key("x", {"b": 2, "a": 1})
    assert a == b
    assert RTFParser.generate_cache_key("x", None) == "rtf:x:"


@pytest.mark.asyncio
async def test_parse_intent(complete):
    intent = await RTFParser(complete).parse_intent(PAPER_REQUEST)

    assert intent.primary_intent == "create_document"
    assert intent.entities[0].value == "distributed caching"
    assert intent.urgency == Priority.HIGH


@pytest.mark.asyncio
async def test_parse_intent_falls_back(failing_complete):
    intent = await RTFParser(failing_complete).parse_intent("hello")

    assert intent.primary_intent == "general_assistance"
    assert intent.sentiment == "neutral"
    assert intent.complexity == Complexity.MODERATE


def test_rtf_payload_uses_camel_case_aliases():
    payload = RTFStructure.fallback("hi there").to_payload()

    assert "expectedOutcome" in payload["task"]
    assert "outputType" in payload["format"]
    assert payload["metadata"]["fallback"] is True
