"""Tests for AI enrichment (position + summary)."""

import threading

import pytest
from conftest import SAMPLE_CV_TEXT, SAMPLE_SUMMARY, FakeCompletionClient

from cvbank.enrichment.enricher import (
    MIN_SUMMARY_LENGTH,
    POSITION_INPUT_CHARS,
    SUMMARY_INPUT_CHARS,
    AIEnricher,
    normalize_position,
)
from cvbank.errors import GenerationFailed, RateLimited, ServiceUnavailable


class TestNormalizePosition:
    def test_plain_title(self):
        assert normalize_position("  Software Engineer \n") == "Software Engineer"

    def test_strips_label_prefix(self):
        assert normalize_position("Position: Data Scientist") == "Data Scientist"
        assert normalize_position("Job Title: Marketing Manager") == "Marketing Manager"

    def test_keeps_first_line_of_multiline_answer(self):
        assert normalize_position("DevOps Engineer\nat Acme Corp since 2020") == "DevOps Engineer"

    def test_long_single_line_kept(self):
        raw = "Engineer " * 20
        assert normalize_position(raw) == raw.strip()

    def test_too_short_is_not_specified(self):
        assert normalize_position("") == "Not Specified"
        assert normalize_position(None) == "Not Specified"
        assert normalize_position("X") == "Not Specified"


class TestExtractPosition:
    def test_uses_leading_text_only(self):
        client = FakeCompletionClient()
        enricher = AIEnricher(client, "test-model")
        text = "A" * POSITION_INPUT_CHARS + "TAIL_MARKER"

        enricher.extract_position(text)

        call = client.calls[0]
        assert "TAIL_MARKER" not in call["prompt"]
        assert call["temperature"] == 0.3
        assert call["max_output_tokens"] == 50
        assert call["model"] == "test-model"

    def test_failure_returns_not_specified(self):
        client = FakeCompletionClient(position=RateLimited("slow down"))
        assert AIEnricher(client, "m").extract_position(SAMPLE_CV_TEXT) == "Not Specified"

    def test_unexpected_exception_returns_not_specified(self):
        client = FakeCompletionClient(position=RuntimeError("boom"))
        assert AIEnricher(client, "m").extract_position(SAMPLE_CV_TEXT) == "Not Specified"


class TestGenerateSummary:
    def test_returns_stripped_summary(self):
        client = FakeCompletionClient(summary=f"  {SAMPLE_SUMMARY}\n")
        assert AIEnricher(client, "m").generate_summary(SAMPLE_CV_TEXT) == SAMPLE_SUMMARY
        call = client.calls[0]
        assert call["temperature"] == 0.7
        assert call["max_output_tokens"] == 400

    def test_long_input_truncated_with_ellipsis(self):
        client = FakeCompletionClient()
        text = "B" * SUMMARY_INPUT_CHARS + "TAIL_MARKER"

        AIEnricher(client, "m").generate_summary(text)

        prompt = client.calls[0]["prompt"]
        assert "B" * SUMMARY_INPUT_CHARS + "..." in prompt
        assert "TAIL_MARKER" not in prompt

    def test_short_input_not_truncated(self):
        client = FakeCompletionClient()
        AIEnricher(client, "m").generate_summary(SAMPLE_CV_TEXT)
        assert SAMPLE_CV_TEXT + "..." not in client.calls[0]["prompt"]

    def test_too_short_summary_fails(self):
        client = FakeCompletionClient(summary="x" * (MIN_SUMMARY_LENGTH - 1))
        with pytest.raises(GenerationFailed, match="too short"):
            AIEnricher(client, "m").generate_summary(SAMPLE_CV_TEXT)

    def test_typed_error_propagates(self):
        client = FakeCompletionClient(summary=ServiceUnavailable("down"))
        with pytest.raises(ServiceUnavailable):
            AIEnricher(client, "m").generate_summary(SAMPLE_CV_TEXT)

    def test_unexpected_error_wrapped(self):
        client = FakeCompletionClient(summary=RuntimeError("boom"))
        with pytest.raises(GenerationFailed, match="boom"):
            AIEnricher(client, "m").generate_summary(SAMPLE_CV_TEXT)


class TestEnrichPositionAndSummary:
    def test_success(self):
        client = FakeCompletionClient(position="Position: Backend Engineer")
        result = AIEnricher(client, "m").enrich_position_and_summary(SAMPLE_CV_TEXT)
        assert result.position == "Backend Engineer"
        assert result.summary == SAMPLE_SUMMARY
        assert sorted(c["kind"] for c in client.calls) == ["position", "summary"]

    def test_position_failure_does_not_block_summary(self):
        client = FakeCompletionClient(position=RuntimeError("boom"))
        result = AIEnricher(client, "m").enrich_position_and_summary(SAMPLE_CV_TEXT)
        assert result.position == "Not Specified"
        assert result.summary == SAMPLE_SUMMARY

    def test_summary_failure_carries_position(self):
        client = FakeCompletionClient(summary=RateLimited("429"))
        with pytest.raises(RateLimited) as exc_info:
            AIEnricher(client, "m").enrich_position_and_summary(SAMPLE_CV_TEXT)
        assert exc_info.value.position == "Senior Backend Engineer"

    def test_calls_run_concurrently(self):
        barrier = threading.Barrier(2, timeout=5)

        class BarrierClient(FakeCompletionClient):
            def complete(self, prompt, **kwargs):
                # Both calls must be in flight at once to pass the barrier
                barrier.wait()
                return super().complete(prompt, **kwargs)

        result = AIEnricher(BarrierClient(), "m").enrich_position_and_summary(SAMPLE_CV_TEXT)
        assert result.summary == SAMPLE_SUMMARY
