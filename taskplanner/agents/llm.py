from functools import cache
from typing import TypeAlias

from langchain_community.chat_models import FakeListChatModel
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_groq import ChatGroq
from langchain_huggingface import ChatHuggingFace, HuggingFaceEndpoint
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI

from taskplanner.core import (
    AllModelEnum,
    CompletionFn,
    FakeModelName,
    GroqModelName,
    HuggingFaceModelName,
    OllamaModelName,
    OpenAIModelName,
)
from taskplanner.settings import settings

_MODEL_TABLE = {
    FakeModelName.FAKE: "fake",
    OpenAIModelName.GPT_4O: "gpt-4o",
    OpenAIModelName.GPT_4O_MINI: "gpt-4o-mini",
    OpenAIModelName.GPT_5: "gpt-5",
    OpenAIModelName.GPT_5_MINI: "gpt-5-mini",
    OllamaModelName.OLLAMA_GENERIC: "ollama",
    GroqModelName.LLAMA_31_8B: "llama-3.1-8b-instant",
    GroqModelName.LLAMA_33_70B: "llama-3.3-70b-versatile",
    HuggingFaceModelName.DEEPSEEK_R1: "deepseek-ai/DeepSeek-R1",
    HuggingFaceModelName.DEEPSEEK_V3: "deepseek-ai/DeepSeek-V3",
}

ModelT: TypeAlias = (
    ChatOpenAI | ChatGroq | ChatOllama | ChatHuggingFace | FakeListChatModel
)


@cache
def get_model(model_name: AllModelEnum, /) -> ModelT:
    api_model_name = _MODEL_TABLE.get(model_name)
    if not api_model_name:
        raise ValueError(f"Unsupported model: {model_name}")

    if model_name in OpenAIModelName:
        # GPT-5 models only support default temperature (1.0)
        temp = (
            1.0
            if model_name in (OpenAIModelName.GPT_5, OpenAIModelName.GPT_5_MINI)
            else 0.3
        )
        return ChatOpenAI(
            model=api_model_name,
            temperature=temp,
            api_key=settings.OPENAI_API_KEY.get_secret_value()
            if settings.OPENAI_API_KEY
            else None,
        )
    if model_name in GroqModelName:
        return ChatGroq(model=api_model_name, temperature=0.3)
    if model_name in HuggingFaceModelName:
        llm = HuggingFaceEndpoint(
            repo_id=api_model_name,
            task="text-generation",
        )
        return ChatHuggingFace(llm=llm, temperature=0.3)
    if model_name in OllamaModelName:
        if settings.OLLAMA_BASE_URL:
            return ChatOllama(
                model=settings.OLLAMA_MODEL,
                temperature=0.3,
                base_url=settings.OLLAMA_BASE_URL,
            )
        return ChatOllama(model=settings.OLLAMA_MODEL, temperature=0.3)
    if model_name in FakeModelName:
        return FakeListChatModel(
            responses=["This is a test response from the fake model."]
        )
    raise ValueError(f"Unsupported model: {model_name}")


def _message_text(content) -> str:
    """Flatten LangChain message content (str or list of content blocks)."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def model_completion(model: BaseChatModel) -> CompletionFn:
    """Adapt a chat model to the ``complete(prompt) -> text`` interface."""

    async def complete(prompt: str) -> str:
        response = await model.ainvoke([HumanMessage(content=prompt)])
        return _message_text(response.content)

    return complete


def get_completion(model_name: AllModelEnum | None = None) -> CompletionFn:
    return model_completion(get_model(model_name or settings.DEFAULT_MODEL))
