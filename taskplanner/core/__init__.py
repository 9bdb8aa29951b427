from taskplanner.core.models import (
    AgentInfo,
    AllModelEnum,
    CompletionFn,
    FakeModelName,
    GroqModelName,
    HuggingFaceModelName,
    OllamaModelName,
    OpenAIModelName,
    Provider,
)

__all__ = [
    "AgentInfo",
    "AllModelEnum",
    "CompletionFn",
    "FakeModelName",
    "GroqModelName",
    "HuggingFaceModelName",
    "OllamaModelName",
    "OpenAIModelName",
    "Provider",
]
