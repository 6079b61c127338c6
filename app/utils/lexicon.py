"""
Keyword, gazetteer and pattern sets used by scoring and validation.

Defaults target Prague neighborhood news written in Czech. A deployment for
another city swaps them with a JSON file (PIPELINE_LEXICON_PATH) whose top-level keys
match the Lexicon field names; missing keys keep the defaults.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path


def _compile(patterns) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


@dataclass(frozen=True)
class Lexicon:
    gazetteer: tuple[str, ...] = (
        "vinohrady", "náměstí míru", "jiřího z poděbrad", "flora", "strašnická",
        "korunní", "blanická", "vinohradská", "americká", "riegrovy sady",
    )
    city_names: tuple[str, ...] = ("praha", "prahy", "praze", "prahou", "prague")
    language_markers: str = "čšřžýáíéůúťďňě"

    category_vocabulary: dict[str, tuple[str, ...]] = field(default_factory=lambda: {
        "transport": ("tramvaj", "metro", "autobus", "mhd", "doprava"),
        "local": ("místní", "čtvrť", "obyvatel", "komunita"),
        "weather": ("počasí", "teplota", "déšť", "sníh", "slunce"),
        "emergency": ("pozor", "upozornění", "hasiči", "policie", "uzavírka"),
        "community": ("komunit", "spolek", "soused", "dobrovoln"),
        "business": ("obchod", "kavárn", "restaurac", "podnik", "otevír"),
        "events": ("koncert", "výstav", "festival", "akce", "program"),
        "local_government": ("radnice", "zastupitel", "úřad", "městská část"),
        "culture": ("divadl", "galerie", "kino", "muze"),
    })

    freshness_keywords: dict[str, tuple[str, ...]] = field(default_factory=lambda: {
        "transport": ("dnes", "zítra", "aktuálně", "momentálně"),
        "weather": ("dnes", "zítra", "tento týden"),
        "events": ("dnes", "zítra", "tento víkend", "příští"),
        "emergency": ("nyní", "aktuálně", "pozor", "upozornění"),
    })
    freshness_bonus: dict[str, float] = field(default_factory=lambda: {
        "transport": 0.1,
        "weather": 0.1,
        "events": 0.1,
        "emergency": 0.15,
    })

    # times, dates, durations, ranges, contact info
    info_markers: tuple[str, ...] = (
        r"\d{1,2}:\d{2}",
        r"\d{1,2}\.\d{1,2}",
        r"\d+ (minut|hodin|dní)",
        r"(od|do|mezi) \d",
        r"telefon|email|web|adresa",
    )
    placeholder_patterns: tuple[str, ...] = (
        r"\berror\b",
        r"\bundefined\b",
        r"\bnull\b",
        r"\[object Object\]",
        r"lorem ipsum",
        r"test test",
        r"xxx",
        r"\bTODO\b",
        r"\bFIXME\b",
    )

    quality_indicators: dict[str, tuple[str, ...]] = field(default_factory=lambda: {
        "specific_locations": ("náměstí", "ulice", "park", "stanice", "zastávka"),
        "time_relevance": ("dnes", "zítra", "tento týden", "aktuálně"),
        "actionable_info": ("doporučuje", "můžete", "sledujte", "pozor"),
        "contact_info": ("telefon", "email", "web"),
    })

    @property
    def info_marker_patterns(self) -> tuple[re.Pattern, ...]:
        return _compile(self.info_markers)

    @property
    def placeholder_regexes(self) -> tuple[re.Pattern, ...]:
        return _compile(self.placeholder_patterns)

    def has_language_markers(self, text: str) -> bool:
        lowered = (text or "").lower()
        return any(ch in lowered for ch in self.language_markers)

    def vocabulary_for(self, category: str) -> tuple[str, ...]:
        return self.category_vocabulary.get(category, ())


    @classmethod
    def from_file(cls, path: str | Path) -> "Lexicon":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Lexicon file must contain a JSON object: {path}")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown lexicon keys: {', '.join(sorted(unknown))}")

        overrides = {}
        for key, value in data.items():
            if isinstance(value, list):
                value = tuple(value)
            elif isinstance(value, dict):
                value = {k: tuple(v) if isinstance(v, list) else v for k, v in value.items()}
            overrides[key] = value
        return replace(cls(), **overrides)


DEFAULT_LEXICON = Lexicon()
