"""AI enrichment: infer a job position and write a summary from CV text."""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from ..cv.models import NOT_SPECIFIED
from ..errors import EnrichmentError, GenerationFailed
from ..integrations.anthropic_client import CompletionClient
from ..prompts import POSITION_PROMPT, SUMMARY_PROMPT

logger = logging.getLogger(__name__)

POSITION_INPUT_CHARS = 2000  # the title is nearly always near the top
POSITION_MAX_TOKENS = 50
POSITION_TEMPERATURE = 0.3
POSITION_MAX_LENGTH = 100

SUMMARY_INPUT_CHARS = 12000
SUMMARY_MAX_TOKENS = 400
SUMMARY_TEMPERATURE = 0.7
MIN_SUMMARY_LENGTH = 50

_LABEL_PREFIX = re.compile(r"^(?:position|job title)[:\s]*", re.IGNORECASE)


@dataclass
class EnrichmentResult:
    position: str
    summary: str


def normalize_position(raw: str | None) -> str:
    """Clean a model-produced job title into a short label."""
    position = (raw or "").strip()
    position = _LABEL_PREFIX.sub("", position).strip()
    if len(position) > POSITION_MAX_LENGTH or "\n" in position:
        position = position.split("\n")[0].strip()
    if len(position) < 2:
        return NOT_SPECIFIED
    return position


class AIEnricher:
    def __init__(self, client: CompletionClient, model: str) -> None:
        self.client = client
        self.model = model

    def extract_position(self, text: str) -> str:
        """Best-effort job title. Never raises: failures yield "Not Specified"."""
        prompt = POSITION_PROMPT.format(cv_text=text[:POSITION_INPUT_CHARS])
        try:
            raw = self.client.complete(
                prompt,
                max_output_tokens=POSITION_MAX_TOKENS,
                temperature=POSITION_TEMPERATURE,
                model=self.model,
            )
        except Exception:
            logger.exception("Position extraction failed (model=%s)", self.model)
            return NOT_SPECIFIED
        return normalize_position(raw)

    def generate_summary(self, text: str) -> str:
        """150-200 word summary. Raises an EnrichmentError subclass on failure."""
        if len(text) > SUMMARY_INPUT_CHARS:
            text = text[:SUMMARY_INPUT_CHARS] + "..."
        prompt = SUMMARY_PROMPT.format(cv_text=text)
        try:
            summary = self.client.complete(
                prompt,
                max_output_tokens=SUMMARY_MAX_TOKENS,
                temperature=SUMMARY_TEMPERATURE,
                model=self.model,
            )
        except EnrichmentError:
            raise
        except Exception as exc:
            raise GenerationFailed(f"Failed to generate summary: {exc}", cause=exc) from exc

        summary = (summary or "").strip()
        if len(summary) < MIN_SUMMARY_LENGTH:
            raise GenerationFailed("Failed to generate summary: generated summary is too short")
        return summary

    def enrich_position_and_summary(self, text: str) -> EnrichmentResult:
        """Run position and summary requests concurrently.

        If the summary fails the error is re-raised with ``position`` set to
        the position result, so the caller can still persist it.
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="enricher") as pool:
            position_future = pool.submit(self.extract_position, text)
            summary_future = pool.submit(self.generate_summary, text)
            position = position_future.result()
            try:
                summary = summary_future.result()
            except EnrichmentError as exc:
                exc.position = position
                raise

        return EnrichmentResult(position=position, summary=summary)
