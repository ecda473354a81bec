"""
Pure text helpers used by the seeder and by tag slugs.

Nothing here touches the database.
"""

from __future__ import annotations

import re

GREEK_TO_LATIN: dict[str, str] = {
    "α": "a",
    "ά": "a",
    "β": "v",
    "γ": "g",
    "δ": "d",
    "ε": "e",
    "έ": "e",
    "ζ": "z",
    "η": "i",
    "ή": "i",
    "θ": "th",
    "ι": "i",
    "ί": "i",
    "ϊ": "i",
    "ΐ": "i",
    "κ": "k",
    "λ": "l",
    "μ": "m",
    "ν": "n",
    "ξ": "x",
    "ο": "o",
    "ό": "o",
    "π": "p",
    "ρ": "r",
    "σ": "s",
    "ς": "s",
    "τ": "t",
    "υ": "y",
    "ύ": "y",
    "ϋ": "y",
    "ΰ": "y",
    "φ": "f",
    "χ": "ch",
    "ψ": "ps",
    "ω": "o",
    "ώ": "o",
}

_NON_KEY_CHARS = re.compile(r"[^a-z0-9]")
_NON_SLUG_RUNS = re.compile(r"[^a-z0-9]+")
_WORD_PUNCTUATION = re.compile(r"[.,;:!?()«»\"'–—]")
_DIALOGUE_DASH = re.compile(r"\s+-\s+")

MIN_WORD_LENGTH = 3


def _map_characters(text: str) -> str:
    return "".join(GREEK_TO_LATIN.get(char, char) for char in text.lower())


def transliterate(text: str) -> str:
    """
    Canonical Latin key for a (Greek) term.

    Lower-cases, maps each Greek letter through GREEK_TO_LATIN and drops
    anything outside [a-z0-9]. "μπρο" and "μπρό" both give "mpro".
    """
    if not text:
        return ""
    return _NON_KEY_CHARS.sub("", _map_characters(text))


def extract_words(text: str) -> list[str]:
    """Lower-cased words of text, punctuation stripped, 1-2 letter words dropped."""
    if not text:
        return []
    cleaned = _WORD_PUNCTUATION.sub(" ", text.lower())
    return [word for word in cleaned.split() if len(word) >= MIN_WORD_LENGTH]


def format_dialogue(text: str | None) -> str | None:
    """Put each " - " dialogue turn on its own line."""
    if not text:
        return text
    return _DIALOGUE_DASH.sub("\n- ", text)


def slugify(text: str) -> str:
    """URL-safe slug: transliterated words joined by hyphens."""
    if not text:
        return ""
    return _NON_SLUG_RUNS.sub("-", _map_characters(text)).strip("-")


__all__ = [
    "GREEK_TO_LATIN",
    "transliterate",
    "extract_words",
    "format_dialogue",
    "slugify",
]
