"""
Spoken-correction detection.

A chunk is a correction when it contains one of a fixed set of retraction
phrases (case-insensitive substring match).
"""

from typing import Optional

CORRECTION_PHRASES = (
    "no aspetta",
    "no in realtà",
    "scusa",
    "volevo dire",
    "mi correggo",
    "no è",
    "anzi",
    "non è vero",
    "sbagliato",
    "correzione",
    "no no",
    "aspetta aspetta",
    "fermati",
    "no intendevo",
)

# Leading debris left behind once a phrase is cut out ("no aspetta, ...")
_STRIP_CHARS = " \t\n,;:.!?-"


def find_correction_phrase(text: str) -> Optional[str]:
    """Return the first lexicon phrase contained in text, or None."""
    lower_text = text.lower()
    for phrase in CORRECTION_PHRASES:
        if phrase in lower_text:
            return phrase
    return None


def is_correction(text: str) -> bool:
    return find_correction_phrase(text) is not None


def strip_correction_phrase(text: str) -> str:
    """
    Remove the first matching correction phrase from text.

    Only the first occurrence of the first lexicon phrase is removed; the
    rest of the text keeps its original casing.

    Args:
        text: Chunk that contains a correction phrase

    Returns:
        Residual text, trimmed of surrounding whitespace and punctuation
    """
    phrase = find_correction_phrase(text)
    if phrase is None:
        return text.strip()
    idx = text.lower().find(phrase)
    residual = text[:idx] + " " + text[idx + len(phrase) :]
    return " ".join(residual.split()).strip(_STRIP_CHARS)
