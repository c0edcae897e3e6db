"""Background enrichment scheduler.

Batches of newly uploaded CVs are queued on a single worker thread, so jobs
run strictly one at a time across the whole process. After every round of
external completion calls the worker sleeps for a fixed cooldown before the
next call, keeping us under the provider's rate limit.

Each job is committed on its own session: if the process dies mid-batch,
earlier records keep their results and later ones stay at the placeholder.
"""

import logging
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..config import settings
from ..cv.models import NOT_SPECIFIED
from ..cv.service import update_enrichment
from ..database.base import SessionLocal
from ..errors import (
    AppError,
    EnrichmentError,
    ModelNotFound,
    RateLimited,
    ServiceUnavailable,
    Unauthorized,
)
from ..integrations.anthropic_client import create_completion_client
from ..integrations.cache import CacheService, NullCacheService, text_cache_key
from .enricher import AIEnricher
from .extractor import TextExtractor

logger = logging.getLogger(__name__)

INSUFFICIENT_TEXT_SUMMARY = (
    "Unable to extract sufficient text from the CV file. "
    "Please make sure the file contains selectable text (not a scanned image)."
)


@dataclass(frozen=True)
class EnrichmentJob:
    record_id: str
    storage_path: str
    mime_type: str


def failure_message(exc: EnrichmentError) -> str:
    """User-visible summary text for a failed enrichment."""
    if isinstance(exc, RateLimited):
        return "Summary generation failed: AI rate limit exceeded. Please reprocess this CV later."
    if isinstance(exc, Unauthorized):
        return "Summary generation failed: the AI service rejected our credentials. Please contact support."
    if isinstance(exc, ServiceUnavailable):
        return "Summary generation failed: the AI service is temporarily unavailable. Please reprocess this CV later."
    if isinstance(exc, ModelNotFound):
        return "Summary generation failed: the configured AI model is not available. Please contact support."
    return f"Summary generation failed: {exc.message}"


class EnrichmentScheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        extractor: TextExtractor,
        enricher: AIEnricher,
        cache: CacheService | None = None,
        cooldown_seconds: float = 20.0,
        min_text_length: int = 50,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session_factory = session_factory
        self.extractor = extractor
        self.enricher = enricher
        self.cache = cache or NullCacheService()
        self.cooldown_seconds = cooldown_seconds
        self.min_text_length = min_text_length
        self._sleep = sleep
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="enrichment")

    def submit(self, jobs: list[EnrichmentJob]) -> Future:
        """Queue a batch behind any batch already running."""
        logger.info("Queued enrichment batch of %d CV(s)", len(jobs))
        return self._executor.submit(self.run_batch, list(jobs))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def run_batch(self, jobs: list[EnrichmentJob]) -> None:
        """Process jobs in order. A failing job never stops the rest."""
        for idx, job in enumerate(jobs, 1):
            logger.info("Enriching CV %s (%d/%d)", job.record_id, idx, len(jobs))
            try:
                self.process_job(job)
            except Exception:
                logger.exception("Enrichment job for CV %s crashed, moving on", job.record_id)
        logger.info("Enrichment batch of %d CV(s) finished", len(jobs))

    def process_job(self, job: EnrichmentJob) -> None:
        try:
            text = self.extractor.extract(job.storage_path, job.mime_type)
        except AppError as exc:
            logger.warning("Text extraction failed for CV %s: %s", job.record_id, exc.message)
            self._persist(job, NOT_SPECIFIED, f"Text extraction failed: {exc.message}")
            return

        if len(text.strip()) < self.min_text_length:
            logger.info("CV %s has only %d characters of text, skipping AI", job.record_id, len(text.strip()))
            self._persist(job, NOT_SPECIFIED, INSUFFICIENT_TEXT_SUMMARY)
            return

        cache_key = text_cache_key(text)
        cached = self.cache.get_json(cache_key)
        if cached and cached.get("summary"):
            logger.info("Enrichment cache hit for CV %s", job.record_id)
            self._persist(job, cached.get("position") or NOT_SPECIFIED, cached["summary"])
            return

        try:
            result = self.enricher.enrich_position_and_summary(text)
        except EnrichmentError as exc:
            self._cooldown()
            logger.warning("Enrichment failed for CV %s: %s", job.record_id, exc.message)
            position = exc.position or NOT_SPECIFIED
            if position == NOT_SPECIFIED:
                position = self.enricher.extract_position(text)
                self._cooldown()
            self._persist(job, position, failure_message(exc))
            return

        self._cooldown()
        self.cache.set_json(cache_key, {"position": result.position, "summary": result.summary})
        self._persist(job, result.position, result.summary)

    def _cooldown(self) -> None:
        if self.cooldown_seconds > 0:
            self._sleep(self.cooldown_seconds)

    def _persist(self, job: EnrichmentJob, position: str, summary: str) -> None:
        db = self.session_factory()
        try:
            if update_enrichment(db, job.record_id, position, summary):
                db.commit()
                logger.info("CV %s enriched: position=%r", job.record_id, position)
            else:
                logger.warning("CV %s disappeared before enrichment could be saved", job.record_id)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def create_enrichment_scheduler(cache: CacheService | None = None) -> EnrichmentScheduler:
    """Factory wiring the scheduler to the configured database and AI provider."""
    enricher = AIEnricher(create_completion_client(), settings.ai_model)
    return EnrichmentScheduler(
        SessionLocal,
        TextExtractor(),
        enricher,
        cache=cache,
        cooldown_seconds=settings.ai_cooldown_seconds,
        min_text_length=settings.min_text_length,
    )
