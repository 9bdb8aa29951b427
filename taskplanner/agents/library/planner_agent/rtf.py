"""
RTF (Role / Task / Format) Structures

Typed representation of a natural-language request. Payloads coming back
from the language model are validated here and repaired with defaults, so
the rest of the pipeline never handles raw model output.
"""

from enum import StrEnum
from typing import Annotated, Any, Dict, List, Mapping, Optional

from pydantic import BeforeValidator, Field, field_validator

from .fields import (
    DEFAULT_CONFIDENCE,
    Confidence,
    SchemaModel,
    StrList,
    Text,
    coerce_records,
    lenient_enum,
)

DEFAULT_ROLE = "AI Assistant"


class TaskType(StrEnum):
    PAPER = "paper"
    PRESENTATION = "presentation"
    PROJECT = "project"
    CODE = "code"
    ANALYSIS = "analysis"
    GENERAL = "general"


class TaskScope(StrEnum):
    SINGLE_ACTION = "single-action"
    MULTI_STEP = "multi-step"
    ITERATIVE = "iterative"
    COLLABORATIVE = "collaborative"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class OutputType(StrEnum):
    DOCUMENT = "document"
    PRESENTATION = "presentation"
    CODE = "code"
    ANALYSIS = "analysis"
    CONVERSATION = "conversation"
    MIXED = "mixed"


class Complexity(StrEnum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    VERY_COMPLEX = "very-complex"


_TASK_TYPE_SYNONYMS = {
    "document": TaskType.PAPER,
    "article": TaskType.PAPER,
    "report": TaskType.PAPER,
    "essay": TaskType.PAPER,
    "research-paper": TaskType.PAPER,
    "whitepaper": TaskType.PAPER,
    "slides": TaskType.PRESENTATION,
    "slide-deck": TaskType.PRESENTATION,
    "deck": TaskType.PRESENTATION,
    "software": TaskType.CODE,
    "programming": TaskType.CODE,
    "development": TaskType.CODE,
    "research": TaskType.ANALYSIS,
}

_OUTPUT_TYPE_SYNONYMS = {
    "paper": OutputType.DOCUMENT,
    "report": OutputType.DOCUMENT,
    "article": OutputType.DOCUMENT,
    "text": OutputType.DOCUMENT,
    "markdown": OutputType.DOCUMENT,
    "pdf": OutputType.DOCUMENT,
    "slides": OutputType.PRESENTATION,
    "chat": OutputType.CONVERSATION,
    "response": OutputType.CONVERSATION,
}

TaskTypeField = Annotated[
    TaskType, lenient_enum(TaskType, TaskType.GENERAL, _TASK_TYPE_SYNONYMS)
]
TaskScopeField = Annotated[TaskScope, lenient_enum(TaskScope, TaskScope.SINGLE_ACTION)]
PriorityField = Annotated[Priority, lenient_enum(Priority, Priority.MEDIUM)]
OutputTypeField = Annotated[
    OutputType, lenient_enum(OutputType, OutputType.CONVERSATION, _OUTPUT_TYPE_SYNONYMS)
]
ComplexityField = Annotated[Complexity, lenient_enum(Complexity, Complexity.MODERATE)]


class Deliverable(SchemaModel):
    name: Text = "Response"
    type: Text = "text"
    description: Text = ""
    format: Text = ""
    priority: Text = "must-have"


class Milestone(SchemaModel):
    name: Text = ""
    description: Text = ""
    estimated_time: Text = ""
    dependencies: StrList = Field(default_factory=list)


class FormatTimeline(SchemaModel):
    estimated_duration: Text = ""
    milestones: List[Milestone] = Field(default_factory=list)
    urgency: Text = "hours"

    @field_validator("milestones", mode="before")
    @classmethod
    def _milestones(cls, value: Any) -> List[Any]:
        return coerce_records(value)


class RTFTask(SchemaModel):
    type: TaskTypeField = TaskType.GENERAL
    intent: Text = "assist_user"
    description: Text = ""
    scope: TaskScopeField = TaskScope.SINGLE_ACTION
    priority: PriorityField = Priority.MEDIUM
    requirements: StrList = Field(default_factory=list)
    constraints: StrList = Field(default_factory=list)
    dependencies: StrList = Field(default_factory=list)
    expected_outcome: Text = "User assistance provided"


class RTFFormat(SchemaModel):
    output_type: OutputTypeField = OutputType.CONVERSATION
    structure: Text = "linear"
    style: Text = "casual"
    deliverables: List[Deliverable] = Field(default_factory=list)
    timeline: FormatTimeline = Field(default_factory=FormatTimeline)

    @field_validator("deliverables", mode="before")
    @classmethod
    def _deliverables(cls, value: Any) -> List[Any]:
        return coerce_records(value)

    @field_validator("timeline", mode="before")
    @classmethod
    def _timeline(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, str):
            return {"estimatedDuration": value}
        return value


class RTFMetadata(SchemaModel):
    language: Text = "english"
    complexity: ComplexityField = Complexity.MODERATE
    domain: Text = "general"
    keywords: StrList = Field(default_factory=list)
    fallback: bool = False


class RTFStructure(SchemaModel):
    """Parsed Role/Task/Format representation of one request."""

    role: Text = DEFAULT_ROLE
    task: RTFTask = Field(default_factory=RTFTask)
    format: RTFFormat = Field(default_factory=RTFFormat)
    confidence: Confidence = DEFAULT_CONFIDENCE
    metadata: RTFMetadata = Field(default_factory=RTFMetadata)

    @field_validator("role")
    @classmethod
    def _role(cls, value: str) -> str:
        return value or DEFAULT_ROLE

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, RTFMetadata)) else {}

    @property
    def is_fallback(self) -> bool:
        return self.metadata.fallback

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], original_input: str) -> "RTFStructure":
        """Validate a model payload, filling absent sections from the raw input."""
        data: Dict[str, Any] = dict(payload)

        task = data.get("task")
        if not isinstance(task, Mapping):
            data["task"] = default_task(original_input)
        elif not str(task.get("description") or "").strip():
            data["task"] = {**task, "description": original_input}

        if not isinstance(data.get("format"), Mapping):
            data["format"] = default_format()

        if "confidence" not in data:
            data["confidence"] = DEFAULT_CONFIDENCE

        return cls.model_validate(data)

    @classmethod
    def fallback(cls, input_text: str) -> "RTFStructure":
        """Structure built from local heuristics when extraction fails."""
        return cls(
            role=DEFAULT_ROLE,
            task=RTFTask(
                type=TaskType.GENERAL,
                intent="general_assistance",
                description=input_text,
                scope=TaskScope.SINGLE_ACTION,
                priority=Priority.MEDIUM,
                requirements=["Understand user request"],
                expected_outcome="Helpful response provided",
            ),
            format=RTFFormat(
                output_type=OutputType.CONVERSATION,
                structure="linear",
                style="casual",
                deliverables=[
                    Deliverable(
                        name="AI Response",
                        type="text",
                        description="Natural language response to user query",
                        format="conversational",
                        priority="must-have",
                    )
                ],
                timeline=FormatTimeline(
                    estimated_duration="immediate",
                    milestones=[
                        Milestone(
                            name="Generate Response",
                            description="Create helpful response to user input",
                            estimated_time="seconds",
                        )
                    ],
                    urgency="immediate",
                ),
            ),
            confidence=0.5,
            metadata=RTFMetadata(
                language="english",
                complexity=Complexity.MODERATE,
                domain="general",
                keywords=input_text.split()[:5],
                fallback=True,
            ),
        )


def default_task(original_input: str) -> RTFTask:
    return RTFTask(
        type=TaskType.GENERAL,
        intent="assist_user",
        description=original_input,
        scope=TaskScope.SINGLE_ACTION,
        priority=Priority.MEDIUM,
        expected_outcome="User assistance provided",
    )


def default_format() -> RTFFormat:
    return RTFFormat(
        output_type=OutputType.CONVERSATION,
        structure="linear",
        style="casual",
        deliverables=[
            Deliverable(
                name="Response",
                type="text",
                description="AI generated response",
                format="natural language",
                priority="must-have",
            )
        ],
        timeline=FormatTimeline(estimated_duration="minutes", urgency="hours"),
    )


class IntentEntity(SchemaModel):
    type: Text = "concept"
    value: Text = ""
    confidence: Confidence = DEFAULT_CONFIDENCE
    context: Text = ""


class IntentAnalysis(SchemaModel):
    """Intent and entities extracted from a message."""

    primary_intent: Text = "general_assistance"
    secondary_intents: StrList = Field(default_factory=list)
    entities: List[IntentEntity] = Field(default_factory=list)
    sentiment: Text = "neutral"
    urgency: PriorityField = Priority.MEDIUM
    complexity: ComplexityField = Complexity.MODERATE

    @field_validator("entities", mode="before")
    @classmethod
    def _entities(cls, value: Any) -> List[Any]:
        return coerce_records(value, key="value")

    @field_validator("primary_intent")
    @classmethod
    def _primary_intent(cls, value: str) -> str:
        return value or "general_assistance"

    @classmethod
    def fallback(cls) -> "IntentAnalysis":
        return cls()


def describe_context(context: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop empty values so prompts and cache keys only carry real context."""
    if not context:
        return {}
    return {key: value for key, value in context.items() if value not in (None, "", [], {})}
