"""Tests for craft.changelog.summarize module."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from craft.changelog.summarize import (
    GITHUB_MODELS_URL,
    SummarizationFailure,
    default_tiers,
    local_tier,
    make_summarizer,
    remote_tier,
    summarize_items,
)
from craft.core.config import SummaryConfig
from craft.output.console import MockConsole
from craft.platform.http import HttpError, MockHttpClient

ITEMS = [
    "speed up parser startup",
    "speed up changelog rendering",
    "fix crash on empty tag list",
    "document calver offset",
]


def _failing(items: Sequence[str]) -> str | None:
    raise SummarizationFailure("model unavailable")


def _fixed(items: Sequence[str]) -> str | None:
    return "  Faster everything.  "


def _timing_out(items: Sequence[str]) -> str | None:
    raise TimeoutError("model timed out")


class TestSummarizeItems:
    def test_disabled(self) -> None:
        config = SummaryConfig(enabled=False, threshold=0)
        assert summarize_items(ITEMS, config, [_fixed]) is None

    def test_at_threshold_is_not_summarized(self) -> None:
        config = SummaryConfig(enabled=True, threshold=4)
        assert summarize_items(ITEMS, config, [_fixed]) is None

    def test_above_threshold(self) -> None:
        config = SummaryConfig(enabled=True, threshold=3)
        assert summarize_items(ITEMS, config, [_fixed]) == "Faster everything."

    def test_failing_tier_falls_back_with_warning(self) -> None:
        console = MockConsole()
        config = SummaryConfig(enabled=True, threshold=1)

        result = summarize_items(ITEMS, config, [_failing, _fixed], console)

        assert result == "Faster everything."
        assert console.has_warning()
        assert console.find("model unavailable")

    def test_unexpected_tier_error_falls_back_to_next_tier(self) -> None:
        console = MockConsole()
        config = SummaryConfig(enabled=True, threshold=1)

        result = summarize_items(ITEMS, config, [_timing_out, local_tier()], console)

        assert result
        assert console.find("TimeoutError: model timed out")

    def test_all_tiers_fail(self) -> None:
        config = SummaryConfig(enabled=True, threshold=1)
        assert summarize_items(ITEMS, config, [_failing], MockConsole()) is None

    def test_make_summarizer(self) -> None:
        summarizer = make_summarizer(SummaryConfig(enabled=True, threshold=1), [_fixed])
        assert summarizer(ITEMS) == "Faster everything."
        assert summarizer(ITEMS[:1]) is None


class TestRemoteTier:
    def test_returns_model_text(self) -> None:
        http = MockHttpClient()
        http.set_json(GITHUB_MODELS_URL, {"choices": [{"message": {"content": "Faster."}}]})

        tier = remote_tier(http, "token", "openai/gpt-4.1-mini")

        assert tier(ITEMS) == "Faster."
        url, payload = http.calls[0]
        assert url == GITHUB_MODELS_URL
        assert payload["model"] == "openai/gpt-4.1-mini"

    def test_http_error_is_failure(self) -> None:
        http = MockHttpClient()
        http.set_json(GITHUB_MODELS_URL, HttpError(url=GITHUB_MODELS_URL, status=401, message="no"))

        with pytest.raises(SummarizationFailure, match="HTTP 401"):
            remote_tier(http, "token", "m")(ITEMS)

    def test_no_choices_is_failure(self) -> None:
        http = MockHttpClient()
        http.set_json(GITHUB_MODELS_URL, {"choices": []})

        with pytest.raises(SummarizationFailure):
            remote_tier(http, "token", "m")(ITEMS)


class TestLocalTier:
    def test_extractive_summary_is_deterministic(self) -> None:
        first = local_tier()(ITEMS)
        assert first is not None
        assert first.startswith("Highlights: ")
        assert first == local_tier()(ITEMS)

    def test_keeps_original_order(self) -> None:
        summary = local_tier()(ITEMS)
        assert summary is not None
        assert summary.index("parser") < summary.index("changelog")

    def test_nothing_to_summarize(self) -> None:
        assert local_tier()(["", "  "]) is None


class TestDefaultTiers:
    def test_remote_then_local(self) -> None:
        config = SummaryConfig(model="openai/gpt-4.1-mini")
        tiers = default_tiers(config, token="t", http=MockHttpClient())
        assert len(tiers) == 2

    def test_local_model_prefix(self) -> None:
        tiers = default_tiers(SummaryConfig(model="local:extractive"), token="t")
        assert len(tiers) == 1

    def test_without_token(self) -> None:
        assert len(default_tiers(SummaryConfig(model="openai/gpt-4.1-mini"), token=None)) == 1
