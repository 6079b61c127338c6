"""Deterministic template articles used when the external generator is unavailable."""
from __future__ import annotations

import hashlib

from app.services.generation import GeneratedArticle, SourceItem, TargetNeighborhood

TEMPLATE_CONFIDENCE = 0.60

TITLES = {
    "transport": ["Doprava v oblasti {place}", "Změny v MHD: {place}"],
    "weather": ["Počasí pro {place}", "Předpověď počasí: {place}"],
    "emergency": ["Upozornění pro {place}", "Důležité: {place}"],
    "events": ["Akce v oblasti {place}", "Co se chystá: {place}"],
    "business": ["Místní obchody: {place}", "Podniky v oblasti {place}"],
    "community": ["Komunitní život: {place}", "Sousedé v oblasti {place}"],
}
DEFAULT_TITLES = ["Novinky z oblasti {place}", "Aktuálně: {place}"]

BODIES = [
    (
        "{headline}. Obyvatelé oblasti {place} v Praze by o této zprávě měli vědět. "
        "Podrobnosti najdete u původního zdroje {source}. "
        "Sledujte místní informace, aktualizace zveřejníme, jakmile budou k dispozici."
    ),
    (
        "V oblasti {place} v Praze se objevila nová zpráva: {headline}. "
        "Informaci přinesl zdroj {source}. "
        "Více podrobností doplníme v dalším vydání zpravodaje."
    ),
]


def _pick(options: list[str], key: str) -> str:
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return options[int(digest, 16) % len(options)]


class TemplateGenerator:
    """Same raw item in, same article out."""

    def generate(self, raw_item: SourceItem, neighborhood: TargetNeighborhood | None, category: str) -> GeneratedArticle:
        place = neighborhood.name if neighborhood else "Praha"
        headline = (raw_item.title or "").strip().rstrip(".!?")

        title = _pick(TITLES.get(category, DEFAULT_TITLES), f"title:{raw_item.id}").format(place=place)
        body = _pick(BODIES, f"body:{raw_item.id}").format(
            place=place,
            headline=headline,
            source=raw_item.source,
        )

        return GeneratedArticle(
            title=title,
            body=body,
            summary=headline or None,
            confidence=TEMPLATE_CONFIDENCE,
            metadata={"source": "template", "model": None},
        )
