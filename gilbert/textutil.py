"""Small string helpers."""

from __future__ import annotations

EMPTY_STRING = ""


def string_empty(text: str) -> bool:
    """Return True when *text* holds nothing but whitespace."""
    return text.strip() == EMPTY_STRING


def one_of_strings(*args: str) -> str:
    """Return the first non-empty string, or an empty string if there is none."""
    return next((text for text in args if text != EMPTY_STRING), EMPTY_STRING)