"""Async LLM client wrapper using LiteLLM.

Provides a consistent interface to the grounding text model across providers
(Gemini, Claude, Ollama, Bedrock).
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import litellm

from firesim.models.llm_config import LLMConfig

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Exception raised for LLM-related errors."""

    pass


@dataclass
class LLMResponse:
    """Response from LLM completion.

    Attributes:
        content: Generated text content
        model: Model that generated the response
        usage: Token usage statistics
        finish_reason: Reason for completion (stop, length, etc.)
        grounded: Whether the provider returned search grounding metadata
    """

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str | None = None
    grounded: bool = False


def _has_grounding_metadata(response: Any) -> bool:
    """Check a LiteLLM response for Google Search grounding metadata."""
    metadata = getattr(response, "vertex_ai_grounding_metadata", None)
    if metadata:
        return True
    hidden = getattr(response, "_hidden_params", None) or {}
    return bool(hidden.get("vertex_ai_grounding_metadata"))


class LLMClient:
    """Async LLM client using LiteLLM."""

    def __init__(self, config: LLMConfig) -> None:
        """Initialize LLM client with configuration.

        Args:
            config: LLM configuration with provider, model, and credentials
        """
        self.config = config

    def _completion_kwargs(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None,
        tools: list[dict[str, Any]] | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.config.get_litellm_model_name(),
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }
        if self.config.api_key:
            kwargs["api_key"] = self.config.api_key
        if self.config.api_base:
            kwargs["api_base"] = self.config.api_base
        if tools:
            kwargs["tools"] = tools
        return kwargs

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Generate a completion from the LLM.

        Args:
            prompt: User prompt for the LLM
            system_prompt: Optional system prompt
            max_tokens: Override max_tokens from config
            tools: Provider tools (e.g. Google Search grounding)

        Returns:
            LLMResponse with generated content

        Raises:
            LLMError: If the completion fails
        """
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await litellm.acompletion(
                **self._completion_kwargs(messages, max_tokens, tools)
            )
        except litellm.exceptions.AuthenticationError as e:
            raise LLMError(f"Authentication failed for {self.config.provider}: {e}") from e
        except litellm.exceptions.RateLimitError as e:
            raise LLMError(f"Rate limit exceeded for {self.config.provider}: {e}") from e
        except litellm.exceptions.APIConnectionError as e:
            raise LLMError(f"Connection failed to {self.config.provider}: {e}") from e
        except Exception as e:
            raise LLMError(f"LLM completion failed: {e}") from e

        if not response.choices:
            raise LLMError("LLM returned no choices")

        choice = response.choices[0]
        content = choice.message.content or ""

        usage: dict[str, int] = {}
        response_usage = getattr(response, "usage", None)
        if response_usage:
            usage = {
                "prompt_tokens": response_usage.prompt_tokens or 0,
                "completion_tokens": response_usage.completion_tokens or 0,
                "total_tokens": response_usage.total_tokens or 0,
            }

        grounded = _has_grounding_metadata(response)
        logger.debug(
            "LLM completion from %s: %d chars, grounded=%s",
            self.config.model,
            len(content),
            grounded,
        )

        return LLMResponse(
            content=content,
            model=getattr(response, "model", None) or self.config.model,
            usage=usage,
            finish_reason=choice.finish_reason,
            grounded=grounded,
        )

    async def check_available(self) -> bool:
        """Check if the LLM provider is reachable with the configured credentials.

        Returns:
            True if a minimal completion succeeds
        """
        try:
            await self.complete("Say 'ok'", max_tokens=10)
            return True
        except LLMError as e:
            logger.debug("LLM availability check failed: %s", e)
            return False


def create_client(config: LLMConfig) -> LLMClient:
    """Create an LLM client from configuration.

    Raises:
        ValueError: If the LLM is disabled in config
    """
    if not config.enabled:
        raise ValueError("Grounding LLM is disabled in configuration")

    return LLMClient(config)
