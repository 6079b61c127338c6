import re

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text or "") if s.strip()]


def split_words(text: str) -> list[str]:
    return [w for w in (text or "").split() if w]


def count_terms(text_lower: str, terms) -> int:
    """How many of `terms` occur in the (already lowercased) text."""
    return sum(1 for t in terms if t and t.lower() in text_lower)


def contains_any(text_lower: str, terms) -> bool:
    return any(t and t.lower() in text_lower for t in terms)


def count_patterns(text: str, patterns) -> int:
    return sum(1 for p in patterns if p.search(text))
