"""Text normalization and sufficiency checks for extracted resume text."""
import math
import re
from typing import Optional, Tuple

MIN_WORD_COUNT = 50

RESUME_KEYWORDS = (
    "experience", "education", "skills", "work", "job", "position",
    "university", "degree", "bachelor", "master", "project", "internship",
)

_DISALLOWED_CHARS = re.compile(r"[^\w\s\n.,;:()!?-]")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (12.5 -> 13)."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def count_words(text: str) -> int:
    """Count whitespace separated tokens."""
    return len(text.split()) if text else 0


def preprocess_text_for_ai(text: str) -> str:
    """
    Clean extracted text before it is embedded in a prompt:
    - Collapse runs of whitespace
    - Collapse runs of newlines
    - Drop characters other than word characters and basic punctuation

    Args:
        text: Raw extracted text

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\n+", "\n", text)
    text = _DISALLOWED_CHARS.sub("", text)
    return text.strip()


def validate_text_for_analysis(text: str) -> Tuple[bool, Optional[str]]:
    """
    Decide whether text is substantial enough to send to the model.

    Returns:
        ``(True, None)`` when usable, otherwise ``(False, reason)``
    """
    word_count = count_words(text)
    if word_count < MIN_WORD_COUNT:
        return False, (
            f"Resume text too short ({word_count} words). "
            f"Minimum {MIN_WORD_COUNT} words required for analysis."
        )

    lower_text = text.lower()
    found = [kw for kw in RESUME_KEYWORDS if kw in lower_text]
    if len(found) < 3:
        return False, "Text does not appear to be a resume. Please ensure you uploaded the correct file."

    return True, None
