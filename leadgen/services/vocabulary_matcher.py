from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Literal, Mapping

from rapidfuzz import fuzz, process, utils

REGION_THRESHOLD = 0.3
INDUSTRY_THRESHOLD = 0.4

MatchStrategy = Literal["exact", "synonym", "fuzzy"]


@dataclass(frozen=True)
class VocabularyMatch:
    value: str
    strategy: MatchStrategy
    distance: float = 0.0


def _candidates(vocabulary: Iterable[str] | Mapping[str, Any] | None) -> list[str]:
    if not vocabulary:
        return []
    return [item for item in vocabulary if isinstance(item, str) and item]


def find_exact(token: str | None, vocabulary: Iterable[str] | Mapping[str, Any] | None) -> str | None:
    """Case-insensitive full-string lookup; returns the vocabulary's spelling."""
    if not isinstance(token, str):
        return None
    lowered = token.strip().lower()
    if not lowered:
        return None
    for candidate in _candidates(vocabulary):
        if candidate.lower() == lowered:
            return candidate
    return None


def resolve_token(
    token: str | None,
    vocabulary: Iterable[str] | Mapping[str, Any] | None,
    *,
    synonyms: Mapping[str, str] | None = None,
    threshold: float = REGION_THRESHOLD,
    scorer: Callable[..., float] = fuzz.ratio,
) -> VocabularyMatch | None:
    """Resolve ``token`` to a vocabulary entry: exact, then synonym, then fuzzy.

    ``threshold`` is a normalized distance (0 = exact only, 1 = anything goes).
    Returns None when nothing is close enough; the caller decides what to log.
    """
    if not isinstance(token, str) or not token.strip():
        return None
    candidates = _candidates(vocabulary)
    if not candidates:
        return None

    exact = find_exact(token, candidates)
    if exact is not None:
        return VocabularyMatch(value=exact, strategy="exact")

    if synonyms:
        target = synonyms.get(token.strip().lower())
        if target is not None:
            hit = find_exact(target, candidates)
            if hit is not None:
                return VocabularyMatch(value=hit, strategy="synonym")

    cutoff = max(0.0, min(1.0, 1.0 - threshold)) * 100
    best = process.extractOne(
        token.strip(),
        candidates,
        scorer=scorer,
        processor=utils.default_process,
        score_cutoff=cutoff,
    )
    if best is None:
        return None
    choice, score, _ = best
    distance = round(1.0 - score / 100, 4)
    if distance > threshold:
        return None
    return VocabularyMatch(value=choice, strategy="fuzzy", distance=distance)


def match_vocabulary(
    token: str | None,
    vocabulary: Iterable[str] | Mapping[str, Any] | None,
    *,
    synonyms: Mapping[str, str] | None = None,
    threshold: float = REGION_THRESHOLD,
) -> str | None:
    match = resolve_token(token, vocabulary, synonyms=synonyms, threshold=threshold)
    return match.value if match else None
