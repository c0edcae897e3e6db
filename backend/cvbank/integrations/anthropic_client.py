"""Text-completion capability backed by the Anthropic API.

The enrichment code depends only on the CompletionClient protocol, so tests
can substitute a deterministic fake. Provider errors are translated into the
typed enrichment failures from errors.py.
"""

import logging
from typing import Protocol

import anthropic

from ..config import settings
from ..errors import (
    EnrichmentError,
    GenerationFailed,
    ModelNotFound,
    RateLimited,
    ServiceUnavailable,
    Unauthorized,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60.0  # seconds


class CompletionClient(Protocol):
    """Completion capability interface."""

    def complete(self, prompt: str, *, max_output_tokens: int, temperature: float, model: str) -> str: ...


def error_for_status(status_code: int | None, detail: str, model: str) -> EnrichmentError:
    """Map a provider HTTP status into a typed enrichment failure."""
    if status_code in (401, 403):
        return Unauthorized("Invalid AI provider API key. Please check the ANTHROPIC_API_KEY environment variable.")
    if status_code == 404:
        return ModelNotFound(f'AI model "{model}" not found or invalid.')
    if status_code == 429:
        return RateLimited("AI provider rate limit exceeded. Please try again later.")
    if status_code in (500, 502, 503, 504, 529):
        return ServiceUnavailable(f"AI service temporarily unavailable: {detail}")
    return GenerationFailed(f"Failed to generate completion: {detail}")


class AnthropicCompletionClient:
    """Anthropic Messages API adapter.

    SDK-level retries are disabled: rate limiting is handled by the
    enrichment scheduler's cooldown, not by hidden retries here.

    The Messages API of the supported SDK (anthropic 1.x) takes no sampling
    parameters, so ``temperature`` is accepted for the protocol and not sent.
    """

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key
        self._client = anthropic.Anthropic(api_key=api_key, max_retries=0, timeout=REQUEST_TIMEOUT)

    def complete(self, prompt: str, *, max_output_tokens: int, temperature: float, model: str) -> str:
        if not self._api_key:
            raise error_for_status(401, "no API key configured", model)
        try:
            message = self._client.messages.create(
                model=model,
                max_tokens=max_output_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as exc:
            logger.warning("Anthropic API error (model=%s, status=%s): %s", model, exc.status_code, exc.message)
            raise error_for_status(exc.status_code, exc.message, model) from exc
        except anthropic.APIConnectionError as exc:
            logger.warning("Anthropic API unreachable (model=%s): %s", model, exc)
            raise ServiceUnavailable(f"AI service temporarily unavailable: {exc}", cause=exc) from exc
        except anthropic.APIError as exc:
            raise GenerationFailed(f"Failed to generate completion: {exc}", cause=exc) from exc

        return "".join(block.text for block in message.content if block.type == "text").strip()


def create_completion_client() -> CompletionClient:
    """Factory: the configured completion client."""
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; CV enrichment will fail until it is configured")
    return AnthropicCompletionClient(settings.anthropic_api_key)
