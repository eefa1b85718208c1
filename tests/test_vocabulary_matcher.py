from __future__ import annotations

from leadgen.services.vocabulary_matcher import (
    INDUSTRY_THRESHOLD,
    REGION_THRESHOLD,
    find_exact,
    match_vocabulary,
    resolve_token,
)
from leadgen.vocabulary.loader import get_vocabulary


def test_nyc_resolves_through_synonym_with_region_id():
    vocabulary = get_vocabulary()

    match = resolve_token(
        "nyc",
        vocabulary.region_names,
        synonyms=vocabulary.region_synonyms,
        threshold=REGION_THRESHOLD,
    )

    assert match is not None
    assert match.value == "New York City Metropolitan Area"
    assert match.strategy == "synonym"
    assert vocabulary.region(match.value).id == "90000070"


def test_synonym_lookup_ignores_fuzzy_threshold():
    vocabulary = get_vocabulary()

    match = resolve_token("  NYC ", vocabulary.region_names, synonyms=vocabulary.region_synonyms, threshold=0.0)

    assert match is not None
    assert match.value == "New York City Metropolitan Area"


def test_exact_match_is_case_insensitive_and_returns_vocabulary_spelling():
    vocabulary = get_vocabulary()

    match = resolve_token("san francisco bay area", vocabulary.region_names, synonyms=vocabulary.region_synonyms)

    assert match is not None
    assert match.value == "San Francisco Bay Area"
    assert match.strategy == "exact"
    assert find_exact("FINANCIAL SERVICES", vocabulary.industries) == "Financial Services"


def test_fuzzy_match_accepts_close_spelling():
    vocabulary = get_vocabulary()

    match = resolve_token("Financial Servces", vocabulary.industries, threshold=INDUSTRY_THRESHOLD)

    assert match is not None
    assert match.value == "Financial Services"
    assert match.strategy == "fuzzy"
    assert 0 < match.distance <= INDUSTRY_THRESHOLD


def test_fuzzy_region_typo_resolves():
    vocabulary = get_vocabulary()

    assert match_vocabulary("Greater Londn", vocabulary.region_names) == "Greater London"


def test_zero_threshold_only_accepts_exact_matches():
    vocabulary = get_vocabulary()

    assert resolve_token("Financial Servces", vocabulary.industries, threshold=0.0) is None


def test_unknown_token_returns_none():
    vocabulary = get_vocabulary()

    assert match_vocabulary("Narnia", vocabulary.region_names, synonyms=vocabulary.region_synonyms) is None


def test_synonym_target_missing_from_vocabulary_is_not_returned():
    match = resolve_token(
        "nyc",
        ["Greater London", "Berlin Metropolitan Area"],
        synonyms={"nyc": "New York City Metropolitan Area"},
    )

    assert match is None


def test_empty_inputs_return_none():
    assert resolve_token("", ["Financial Services"]) is None
    assert resolve_token("   ", ["Financial Services"]) is None
    assert resolve_token(None, ["Financial Services"]) is None
    assert resolve_token("fintech", []) is None
    assert resolve_token("fintech", None) is None


def test_vocabulary_aliases_include_synonyms_and_mentions():
    vocabulary = get_vocabulary()

    aliases = vocabulary.aliases_for("Financial Services")

    assert "fintech" in aliases
    assert "banking" in aliases
    assert "nyc" in vocabulary.aliases_for("New York City Metropolitan Area")
