"""Best-effort summarization of long changelog buckets.

Summaries come from an ordered list of tiers: the remote abstractive model,
then a local extractive summarizer, then nothing. Each tier maps the bucket's
items to text or None; the first text wins. A tier that fails is reported as a
warning and skipped, so a summary problem never fails a release.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable, Sequence
from functools import partial

from craft.core.config import SummaryConfig
from craft.core.result import Err
from craft.output.console import ConsoleProtocol
from craft.platform.http import HttpClient, RealHttpClient

__all__ = [
    "GITHUB_MODELS_URL",
    "SummarizationFailure",
    "Tier",
    "default_tiers",
    "local_tier",
    "make_summarizer",
    "remote_tier",
    "summarize_items",
]

GITHUB_MODELS_URL = "https://models.github.ai/inference/chat/completions"
LOCAL_MODEL_PREFIX = "local:"
SUMMARY_TIMEOUT_SECONDS = 30.0
TARGET_WORD_RATIO = 0.4

Tier = Callable[[Sequence[str]], str | None]

_WORD_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]*")
_STOPWORDS = frozenset(
    "a an and are as at be by for from in into is it of on or the to with use add fix "
    "update remove when this that".split()
)


class SummarizationFailure(Exception):
    """A tier could not produce a summary."""


def summarize_items(
    items: Sequence[str],
    config: SummaryConfig,
    tiers: Sequence[Tier],
    console: ConsoleProtocol | None = None,
) -> str | None:
    """Summary of `items`, or None.

    None when summaries are disabled, when there are not MORE items than the
    threshold, or when every tier declines or fails.
    """
    if not config.enabled or len(items) <= config.threshold:
        return None

    for tier in tiers:
        try:
            summary = tier(items)
        except SummarizationFailure as e:
            if console is not None:
                console.warning(f"changelog summary unavailable, falling back: {e}")
            continue
        except Exception as e:  # noqa: BLE001
            if console is not None:
                console.warning(
                    f"changelog summary unavailable, falling back: {type(e).__name__}: {e}"
                )
            continue
        if summary and summary.strip():
            return summary.strip()
    return None


def _remote(
    items: Sequence[str],
    *,
    http: HttpClient,
    token: str,
    model: str,
) -> str | None:
    word_count = sum(len(item.split()) for item in items)
    target = max(10, int(word_count * TARGET_WORD_RATIO))
    payload: dict[str, object] = {
        "model": model,
        "messages": [
            {
                "role": "system",
                "content": (
                    "You summarize lists of software changes for release notes. "
                    f"Answer with one plain paragraph of at most {target} words."
                ),
            },
            {"role": "user", "content": "\n".join(f"- {item}" for item in items)},
        ],
        "temperature": 0.2,
    }
    result = http.post_json(
        GITHUB_MODELS_URL,
        payload,
        headers={"Authorization": f"Bearer {token}"},
    )
    if isinstance(result, Err):
        raise SummarizationFailure(str(result.error))

    choices = result.value.get("choices")
    if not isinstance(choices, list) or not choices:
        raise SummarizationFailure("model returned no choices")
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise SummarizationFailure("model returned no text")
    return content


def remote_tier(http: HttpClient, token: str, model: str) -> Tier:
    """Abstractive summary from GitHub Models."""
    return partial(_remote, http=http, token=token, model=model)


def _extractive(items: Sequence[str]) -> str | None:
    sentences = [item.strip().rstrip(".") for item in items if item.strip()]
    if not sentences:
        return None

    words_per_sentence = [
        [w.lower() for w in _WORD_RE.findall(s) if w.lower() not in _STOPWORDS] for s in sentences
    ]
    freq = Counter(w for words in words_per_sentence for w in words)

    def score(i: int) -> float:
        words = words_per_sentence[i]
        if not words:
            return 0.0
        return sum(freq[w] for w in words) / len(words)

    budget = max(1, int(sum(len(s.split()) for s in sentences) * TARGET_WORD_RATIO))
    ranked = sorted(range(len(sentences)), key=lambda i: (-score(i), i))

    chosen: list[int] = []
    used = 0
    for i in ranked:
        if used >= budget:
            break
        chosen.append(i)
        used += len(sentences[i].split())

    picked = [sentences[i] for i in sorted(chosen)]
    return "Highlights: " + "; ".join(picked) + "."


def local_tier() -> Tier:
    """Deterministic extractive summary, no network."""
    return _extractive


def default_tiers(
    config: SummaryConfig,
    *,
    token: str | None,
    http: HttpClient | None = None,
) -> list[Tier]:
    """Tier chain for a configuration.

    A "local:" model, or no token, leaves only the local tier.
    """
    tiers: list[Tier] = []
    if token and not config.model.startswith(LOCAL_MODEL_PREFIX):
        client = http or RealHttpClient(timeout=SUMMARY_TIMEOUT_SECONDS)
        tiers.append(remote_tier(client, token, config.model))
    tiers.append(local_tier())
    return tiers


def make_summarizer(
    config: SummaryConfig,
    tiers: Sequence[Tier],
    console: ConsoleProtocol | None = None,
) -> Callable[[Sequence[str]], str | None]:
    """Bind configuration and tiers into a one-argument summarizer."""
    return partial(summarize_items, config=config, tiers=tiers, console=console)
