"""LLM Factory - Multi-provider abstraction for language models.

This module provides a simple factory pattern for creating chat model
instances across providers (Anthropic, Gemini, Mistral, Ollama, OpenAI).
Gemini and Ollama are reached through their OpenAI-compatible endpoints.
"""

import logging
import os
import threading
from typing import Literal

from langchain_core.language_models.chat_models import BaseChatModel

from chapterflow.config import (
    DEFAULT_MODELS,
    DEFAULT_OLLAMA_BASE_URL,
    DEFAULT_TEMPERATURE,
    GEMINI_OPENAI_BASE_URL,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)

# Type alias for supported providers
ProviderType = Literal["anthropic", "gemini", "mistral", "ollama", "openai"]

# Thread-safe cache for LLM instances
_llm_cache: dict[tuple, BaseChatModel] = {}
_cache_lock = threading.Lock()


def create_llm(
    provider: ProviderType | None = None,
    model: str | None = None,
    temperature: float = DEFAULT_TEMPERATURE,
    api_key: str | None = None,
    base_url: str | None = None,
) -> BaseChatModel:
    """Create a chat model instance with multi-provider support.

    Provider can be specified via parameter or PROVIDER environment variable.
    Model can be specified via parameter or {PROVIDER}_MODEL environment variable.

    Instances are cached by (provider, model, temperature, base_url, api_key).

    Args:
        provider: LLM provider. Defaults to PROVIDER env var or "gemini".
        model: Model name. Defaults to {PROVIDER}_MODEL env var or provider default.
        temperature: Temperature for generation (0.0-1.0).
        api_key: Explicit API key. Falls back to the provider's env var.
        base_url: Endpoint override (Ollama server, OpenAI-compatible gateway).

    Returns:
        Configured chat model instance.

    Raises:
        ValueError: If provider is invalid or a required API key is missing.

    Examples:
        >>> llm = create_llm(provider="ollama", model="qwen2.5:14b")

        >>> llm = create_llm(provider="openai", base_url="http://localhost:8000/v1")
    """
    selected_provider = provider or os.getenv("PROVIDER") or "gemini"

    if selected_provider not in DEFAULT_MODELS:
        raise ValueError(
            f"Invalid provider: {selected_provider}. "
            f"Must be one of: {', '.join(DEFAULT_MODELS.keys())}"
        )

    selected_model = model or DEFAULT_MODELS[selected_provider]

    cache_key = (selected_provider, selected_model, temperature, base_url, api_key)

    with _cache_lock:
        if cache_key in _llm_cache:
            logger.debug(
                f"Using cached LLM: {selected_provider}/{selected_model} (temp={temperature})"
            )
            return _llm_cache[cache_key]

        logger.info(
            f"Creating LLM: {selected_provider}/{selected_model} (temp={temperature})"
        )

        if selected_provider == "gemini":
            from langchain_openai import ChatOpenAI

            key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            if not key:
                raise ValueError(
                    "Gemini API key is required. Set llm.gemini.api_key in config.yaml "
                    "or GEMINI_API_KEY in the environment."
                )
            llm = ChatOpenAI(
                model=selected_model,
                temperature=temperature,
                base_url=base_url or GEMINI_OPENAI_BASE_URL,
                api_key=key,
                timeout=REQUEST_TIMEOUT,
                max_retries=0,
            )
        elif selected_provider == "ollama":
            from langchain_openai import ChatOpenAI

            server = (base_url or DEFAULT_OLLAMA_BASE_URL).rstrip("/")
            llm = ChatOpenAI(
                model=selected_model,
                temperature=temperature,
                base_url=f"{server}/v1",
                api_key="not-needed",  # Local server, no API key required
                timeout=REQUEST_TIMEOUT,
                max_retries=0,
            )
        elif selected_provider == "openai":
            from langchain_openai import ChatOpenAI

            kwargs = {}
            if api_key:
                kwargs["api_key"] = api_key
            if base_url:
                kwargs["base_url"] = base_url
            llm = ChatOpenAI(
                model=selected_model,
                temperature=temperature,
                timeout=REQUEST_TIMEOUT,
                max_retries=0,
                **kwargs,
            )
        elif selected_provider == "mistral":
            from langchain_mistralai import ChatMistralAI

            kwargs = {"api_key": api_key} if api_key else {}
            llm = ChatMistralAI(
                model=selected_model,
                temperature=temperature,
                timeout=int(REQUEST_TIMEOUT),
                max_retries=0,
                **kwargs,
            )
        else:  # anthropic
            from langchain_anthropic import ChatAnthropic

            kwargs = {"api_key": api_key} if api_key else {}
            llm = ChatAnthropic(
                model=selected_model,
                temperature=temperature,
                default_request_timeout=REQUEST_TIMEOUT,
                max_retries=0,
                **kwargs,
            )

        _llm_cache[cache_key] = llm

        return llm


def clear_cache() -> None:
    """Clear the LLM instance cache.

    Useful for testing or when you want to force recreation of LLM instances.
    """
    with _cache_lock:
        _llm_cache.clear()
    logger.debug("LLM cache cleared")


__all__ = ["ProviderType", "create_llm", "clear_cache"]
