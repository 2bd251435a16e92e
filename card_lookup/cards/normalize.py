"""Sanitize OCR output or typed input into a bounded card-name query."""

import re

MAX_NAME_LENGTH = 50

_WHITESPACE_RUN = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^A-Za-z0-9 \-']")


def _collapse(text: str) -> str:
    return _WHITESPACE_RUN.sub(" ", text).strip()


def normalize_name(text: str | None) -> str:
    """
    Return a query string of at most 50 characters made of ASCII letters, digits,
    spaces, hyphens and apostrophes. Empty result means nothing to look up.

    Whitespace is collapsed before and after stripping so the output is always
    trimmed and single-spaced, which makes the function idempotent.
    """
    if not text:
        return ""
    cleaned = _DISALLOWED.sub("", _collapse(text))
    return _collapse(cleaned)[:MAX_NAME_LENGTH].rstrip()
