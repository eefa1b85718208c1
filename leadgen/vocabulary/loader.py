from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

VOCABULARY_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class RegionEntry:
    name: str
    id: str


@dataclass(frozen=True)
class Vocabulary:
    """Controlled vocabularies and alias tables, loaded once and never mutated."""

    industries: tuple[str, ...]
    regions: Mapping[str, RegionEntry]
    region_synonyms: Mapping[str, str]
    industry_synonyms: Mapping[str, str]
    keyword_map: Mapping[str, str]
    industry_mentions: Mapping[str, tuple[str, ...]]
    headcount_mentions: tuple[str, ...]
    sidebar_options: Mapping[str, tuple[str, ...]]

    @property
    def region_names(self) -> tuple[str, ...]:
        return tuple(self.regions)

    def region(self, name: str | None) -> RegionEntry | None:
        if not name:
            return None
        entry = self.regions.get(name)
        if entry is not None:
            return entry
        lowered = name.strip().lower()
        for key, candidate in self.regions.items():
            if key.lower() == lowered:
                return candidate
        return None

    def aliases_for(self, canonical: str) -> tuple[str, ...]:
        """Synonym keys and mention words that point at ``canonical``."""
        target = canonical.lower()
        aliases = [
            alias
            for table in (self.region_synonyms, self.industry_synonyms)
            for alias, value in table.items()
            if value.lower() == target
        ]
        aliases.extend(self.industry_mentions.get(target, ()))
        return tuple(dict.fromkeys(aliases))


def _read_json(name: str) -> dict[str, Any]:
    parsed = json.loads((VOCABULARY_DIR / name).read_text(encoding="utf-8"))
    if not isinstance(parsed, dict):
        raise ValueError(f"{name} must parse into an object")
    return parsed


def _lowered_mapping(raw: Any, label: str) -> Mapping[str, str]:
    if not isinstance(raw, dict):
        raise ValueError(f"synonyms.json must contain a '{label}' object")
    return MappingProxyType({str(key).strip().lower(): str(value) for key, value in raw.items()})


def _build_vocabulary() -> Vocabulary:
    industries_raw = _read_json("industries.json").get("industries")
    if not isinstance(industries_raw, list):
        raise ValueError("industries.json must contain an 'industries' list")
    industries = tuple(item for item in industries_raw if isinstance(item, str) and item.strip())

    regions_raw = _read_json("regions.json").get("regions")
    if not isinstance(regions_raw, list):
        raise ValueError("regions.json must contain a 'regions' list")
    regions: dict[str, RegionEntry] = {}
    for item in regions_raw:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            continue
        regions[item["name"]] = RegionEntry(name=item["name"], id=str(item.get("id", "")))

    synonyms = _read_json("synonyms.json")
    mentions_raw = synonyms.get("industry_mentions") or {}
    industry_mentions = MappingProxyType(
        {
            str(key).lower(): tuple(str(word).lower() for word in words)
            for key, words in mentions_raw.items()
            if isinstance(words, list)
        }
    )
    headcount_mentions = tuple(str(word).lower() for word in synonyms.get("headcount_mentions") or [])

    options_raw = _read_json("sidebar_options.json")
    sidebar_options = MappingProxyType(
        {key: tuple(values) for key, values in options_raw.items() if isinstance(values, list)}
    )

    return Vocabulary(
        industries=industries,
        regions=MappingProxyType(regions),
        region_synonyms=_lowered_mapping(synonyms.get("region"), "region"),
        industry_synonyms=_lowered_mapping(synonyms.get("industry"), "industry"),
        keyword_map=_lowered_mapping(synonyms.get("keyword"), "keyword"),
        industry_mentions=industry_mentions,
        headcount_mentions=headcount_mentions,
        sidebar_options=sidebar_options,
    )


@lru_cache(maxsize=1)
def get_vocabulary() -> Vocabulary:
    return _build_vocabulary()
