"""
Validation of generated articles: a fixed battery of boolean checks turned into
a confidence value and the item's next status.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from app.config import PipelineConfig
from app.utils.constants import APPROVED, ORIGIN_FALLBACK, REJECTED, REVIEW
from app.utils.lexicon import DEFAULT_LEXICON, Lexicon
from app.utils.text import contains_any, count_patterns, split_sentences

CHECK_WEIGHT = 0.9
CATEGORY_BONUS = 0.05
QUALITY_INDICATOR_VALUE = 0.02
QUALITY_INDICATOR_CAP = 0.08

CHECK_NOTES = {
    "length_ok": "Body length outside allowed bounds",
    "language_markers": "No target-language characters found",
    "no_placeholders": "Placeholder or boilerplate text present",
    "sentence_structure": "Too few sentences",
    "title_length": "Title length outside allowed bounds",
    "mentions_city": "City is not mentioned",
    "mentions_neighborhood": "Target neighborhood is not mentioned",
}


@dataclass
class ValidationResult:
    checks: dict[str, bool]
    confidence: float
    status: str
    quality_indicators: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for ok in self.checks.values() if ok)


def decide_status(confidence: float, config: PipelineConfig) -> str:
    if confidence >= config.approve_threshold:
        return APPROVED
    if confidence < config.reject_threshold:
        return REJECTED
    return REVIEW


def run_checks(
    title: str,
    body: str,
    neighborhood_name: str | None,
    lexicon: Lexicon,
    config: PipelineConfig,
) -> dict[str, bool]:
    title = (title or "").strip()
    body = (body or "").strip()
    full = f"{title} {body}"
    full_lower = full.lower()

    return {
        "length_ok": config.min_body_chars <= len(body) <= config.max_body_chars,
        "language_markers": lexicon.has_language_markers(full),
        "no_placeholders": count_patterns(full, lexicon.placeholder_regexes) == 0,
        "sentence_structure": len(split_sentences(body)) >= config.min_sentences,
        "title_length": config.min_title_chars <= len(title) <= config.max_title_chars,
        "mentions_city": contains_any(full_lower, lexicon.city_names),
        "mentions_neighborhood": neighborhood_name is None or neighborhood_name.lower() in full_lower,
    }


def validate_content(
    title: str,
    body: str,
    category: str,
    config: PipelineConfig,
    neighborhood_name: str | None = None,
    origin: str | None = None,
    lexicon: Lexicon = DEFAULT_LEXICON,
) -> ValidationResult:
    checks = run_checks(title, body, neighborhood_name, lexicon, config)
    passed = sum(1 for ok in checks.values() if ok)

    confidence = passed / len(checks) * CHECK_WEIGHT

    full_lower = f"{title or ''} {body or ''}".lower()
    if contains_any(full_lower, lexicon.vocabulary_for(category)):
        confidence += CATEGORY_BONUS

    indicators = [name for name, terms in lexicon.quality_indicators.items() if contains_any(full_lower, terms)]
    confidence += min(QUALITY_INDICATOR_VALUE * len(indicators), QUALITY_INDICATOR_CAP)

    confidence = min(confidence, config.confidence_ceiling)
    if origin == ORIGIN_FALLBACK:
        confidence = min(confidence, config.fallback_confidence_ceiling)
    confidence = round(max(confidence, 0.0), 2)

    notes = [CHECK_NOTES[name] for name, ok in checks.items() if not ok]

    return ValidationResult(
        checks=checks,
        confidence=confidence,
        status=decide_status(confidence, config),
        quality_indicators=indicators,
        notes=notes,
    )
