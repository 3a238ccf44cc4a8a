"""Utility functions for scrivport."""

import re
import unicodedata

_DASHES = str.maketrans({"–": "-", "—": "-", "−": "-", "‑": "-"})


def slugify(text: str, max_length: int = 60) -> str:
    """
    Turn a binder title into a filesystem-friendly slug.

    Lowercases, folds accents, keeps word characters, and joins words with
    single hyphens. Long titles are cut at a hyphen boundary.

    Examples:
        >>> slugify("Chapter 1: The Beginning")
        'chapter-1-the-beginning'
        >>> slugify("Café – Part Two")
        'cafe-part-two'
    """
    text = text.lower().translate(_DASHES)

    text = unicodedata.normalize('NFKD', text)
    text = ''.join(c for c in text if not unicodedata.combining(c))

    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    text = re.sub(r'-+', '-', text).strip('-')

    if len(text) > max_length:
        cut = text.rfind('-', 0, max_length + 1)
        text = text[: cut if cut > 0 else max_length].strip('-')
    return text


def numbered_name(order: int, title: str, width: int = 2) -> str:
    """
    Sibling-ordered file stem: ``01-chapter-one``.

    ``order`` is zero-based; names are numbered from 1. Titles that slugify to
    nothing become ``untitled``.
    """
    return f"{order + 1:0{width}d}-{slugify(title) or 'untitled'}"
