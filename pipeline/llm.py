"""LLM client: the only place the pipeline talks to the model provider.

Exposes a narrow capability so extraction and Q&A never depend on Gemini directly:
  ✅ generate_text(prompt): plain chat completion
  ✅ generate_text_from_media(prompt, data, media_type): vision / OCR over raw bytes
Tests swap in any object with the same two coroutines.
"""

import base64
import logging
from typing import Any, Protocol

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import HumanMessage

import config


class ConfigurationError(RuntimeError):
    """Raised when the provider credential is missing."""


class LanguageModel(Protocol):
    async def generate_text(self, prompt: str) -> str: ...

    async def generate_text_from_media(self, prompt: str, data: bytes, media_type: str) -> str: ...


# ── LLM instances (singletons) ─────────────────────────────────────────
_llm_instances: dict[str, ChatGoogleGenerativeAI] = {}


def _get_llm(model_name: str) -> ChatGoogleGenerativeAI:
    """Lazy singleton per model name: created on first call, reused afterwards."""
    if model_name in _llm_instances:
        return _llm_instances[model_name]
    if not config.GOOGLE_API_KEY:
        logging.error("No API key found. Set GOOGLE_API_KEY (or GEMINI_API_KEY) in your .env file.")
        raise ConfigurationError("GOOGLE_API_KEY is not set in environment")
    llm = ChatGoogleGenerativeAI(
        model=model_name,
        google_api_key=config.GOOGLE_API_KEY,
        temperature=config.LLM_TEMPERATURE,
    )
    _llm_instances[model_name] = llm
    return llm


def clear_llm_instance():
    """
    Reset the LLM singletons. The cached clients hold HTTP sessions tied to the
    event loop they were created on, so drop them when that loop goes away.
    """
    _llm_instances.clear()


def pick_text(message: Any) -> str:
    """Flatten an AIMessage (or bare content) into a string."""
    if message is None:
        return ""
    content = getattr(message, "content", message)
    if isinstance(content, list):
        # Gemini may return a list of content parts
        return "\n".join(part if isinstance(part, str) else str(part.get("text", "")) for part in content)
    return content if isinstance(content, str) else str(content or "")


class GeminiModel:
    """LanguageModel backed by ChatGoogleGenerativeAI (chat + vision)."""

    def __init__(self, chat_model: str | None = None, vision_model: str | None = None):
        self.chat_model = chat_model or config.LLM_MODEL
        self.vision_model = vision_model or config.VISION_MODEL

    async def generate_text(self, prompt: str) -> str:
        llm = _get_llm(self.chat_model)
        response = await llm.ainvoke([HumanMessage(content=prompt)])
        return pick_text(response)

    async def generate_text_from_media(self, prompt: str, data: bytes, media_type: str) -> str:
        llm = _get_llm(self.vision_model)
        message = HumanMessage(content=[
            {"type": "text", "text": prompt},
            {"type": "media", "mime_type": media_type, "data": base64.b64encode(data).decode("utf-8")},
        ])
        response = await llm.ainvoke([message])
        return pick_text(response)


_model: GeminiModel | None = None


def get_model() -> LanguageModel:
    """FastAPI dependency: the process-wide model. Credentials are checked on first call."""
    global _model
    if _model is None:
        _model = GeminiModel()
    return _model
