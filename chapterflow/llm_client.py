"""LLM client - blocking prompt + content completion with provider retry.

The pipeline only depends on the LLMClient protocol. ChatModelClient
adapts any LangChain chat model: the rendered prompt is sent as the
system message and the chapter text as the user message. Transient
provider errors are retried here with exponential backoff; anything
left over surfaces as ProviderError.
"""

import logging
import time
from typing import Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from chapterflow.config import MAX_RETRIES, RETRY_BASE_DELAY, RETRY_MAX_DELAY
from chapterflow.errors import ProviderError
from chapterflow.settings import LLMSettings
from chapterflow.utils.llm_factory import create_llm

logger = logging.getLogger(__name__)

# Exceptions that are retryable
RETRYABLE_EXCEPTIONS = (
    "RateLimitError",
    "APIConnectionError",
    "APITimeoutError",
    "InternalServerError",
    "ServiceUnavailableError",
    "OverloadedError",
)


def is_retryable(exception: Exception) -> bool:
    """Check if an exception is retryable.

    Args:
        exception: The exception to check

    Returns:
        True if the exception should be retried
    """
    exc_name = type(exception).__name__
    return exc_name in RETRYABLE_EXCEPTIONS or "rate" in exc_name.lower()


class LLMClient(Protocol):
    """Anything that turns (prompt, content) into response text."""

    def complete(self, prompt: str, content: str) -> str: ...


class ChatModelClient:
    """LLMClient backed by a LangChain chat model, with retry logic."""

    def __init__(
        self,
        llm: BaseChatModel,
        max_retries: int = MAX_RETRIES,
        sleep=time.sleep,
    ):
        self._llm = llm
        self._max_retries = max(1, max_retries)
        self._sleep = sleep

    def complete(self, prompt: str, content: str) -> str:
        """Send prompt + content and return the response text.

        Raises:
            ProviderError: If the call fails after all retries, or on a
                           non-retryable provider error
        """
        messages = []
        if prompt:
            messages.append(SystemMessage(content=prompt))
        messages.append(HumanMessage(content=content))

        for attempt in range(self._max_retries):
            try:
                response = self._llm.invoke(messages)
                return _response_text(response.content)
            except Exception as e:
                if not is_retryable(e) or attempt == self._max_retries - 1:
                    raise ProviderError(f"{type(e).__name__}: {e}") from e

                # Exponential backoff
                delay = min(RETRY_BASE_DELAY * (2**attempt), RETRY_MAX_DELAY)
                logger.warning(
                    f"LLM call failed (attempt {attempt + 1}/{self._max_retries}): {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                self._sleep(delay)

        raise ProviderError("LLM call did not run")  # pragma: no cover


def _response_text(content) -> str:
    """Flatten LangChain message content (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def create_client(settings: LLMSettings) -> ChatModelClient:
    """Build the client for the provider selected in config.yaml.

    Raises:
        ProviderError: If the provider cannot be configured (e.g. no API key);
                       SDK errors raised while building the model are wrapped too
    """
    block = settings.selected()
    try:
        llm = create_llm(
            provider=settings.provider,
            model=block.model,
            temperature=settings.temperature,
            api_key=block.api_key,
            base_url=block.base_url,
        )
    except Exception as e:
        raise ProviderError(f"{type(e).__name__}: {e}") from e
    return ChatModelClient(llm)


__all__ = ["LLMClient", "ChatModelClient", "create_client", "is_retryable"]
