"""LLM provider adapters."""

from vidgen_engine.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from vidgen_engine.adapters.llm.openai import OpenAIProvider
from vidgen_engine.adapters.llm.stub import StubLLMProvider

__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "StubLLMProvider",
]
