"""Models offered to clients for review."""

from __future__ import annotations

from review_api.models.analysis import ModelInfo

MODELS: list[ModelInfo] = [
    ModelInfo(id="anthropic/claude-3.5-sonnet", name="Claude 3.5 Sonnet", provider="Anthropic"),
    ModelInfo(id="anthropic/claude-3-haiku", name="Claude 3 Haiku", provider="Anthropic"),
    ModelInfo(id="openai/gpt-4o", name="GPT-4o", provider="OpenAI"),
    ModelInfo(id="openai/gpt-4o-mini", name="GPT-4o Mini", provider="OpenAI"),
    ModelInfo(id="google/gemini-2.0-flash-exp", name="Gemini 2.0 Flash", provider="Google"),
    ModelInfo(id="deepseek/deepseek-chat", name="DeepSeek Chat", provider="DeepSeek"),
]


def list_models() -> list[ModelInfo]:
    return list(MODELS)
