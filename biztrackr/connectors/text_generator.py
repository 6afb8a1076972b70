"""
Large-language-model text generation connector.

The insights and chat features depend only on the ``TextGenerator``
interface, so tests and offline deployments can swap in any
implementation. The production implementation calls the Anthropic
Messages API through the official SDK.
"""

from abc import ABC, abstractmethod
from typing import Optional

import anthropic
import httpx
import structlog

from biztrackr.config import Settings
from biztrackr.engine.errors import TextGenerationError

logger = structlog.get_logger()


class TextGenerator(ABC):
    """Capability that turns a prompt into text."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate a completion for ``prompt``.

        Args:
            prompt: User message
            system: Optional system prompt
            max_tokens: Optional override of the configured token cap

        Returns:
            Generated text (may be empty)

        Raises:
            TextGenerationError: If the provider call fails
        """
        pass

    def close(self) -> None:
        """Release any client the generator holds."""


class AnthropicTextGenerator(TextGenerator):
    """
    TextGenerator backed by the Anthropic Messages API.

    Attributes:
        model: Model identifier sent with every request
        max_tokens: Default token cap per completion
        temperature: Sampling temperature
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        timeout_seconds: float = 60.0,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = anthropic.Anthropic(
            api_key=api_key,
            http_client=httpx.Client(timeout=timeout_seconds, follow_redirects=True),
        )

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        request = {
            "model": self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        try:
            response = self._client.messages.create(**request)
        except anthropic.APIError as e:
            logger.error("text_generation_failed", model=self.model, error=str(e))
            raise TextGenerationError(f"Text generation request failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.info(
            "text_generation_completed",
            model=self.model,
            stop_reason=response.stop_reason,
            output_chars=len(text),
        )
        return text

    def close(self) -> None:
        self._client.close()


def build_text_generator(settings: Settings) -> Optional[TextGenerator]:
    """
    Construct the configured generator.

    Returns:
        AnthropicTextGenerator, or None when AI is disabled or no key is set
    """
    if not settings.ai_configured:
        logger.info("text_generator_disabled", ai_enabled=settings.ai_enabled)
        return None
    return AnthropicTextGenerator(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        max_tokens=settings.ai_max_tokens,
        temperature=settings.ai_temperature,
        timeout_seconds=settings.ai_timeout_seconds,
    )
