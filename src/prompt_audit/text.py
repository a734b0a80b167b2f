"""Text normalisation applied before auditing."""

from __future__ import annotations
import html
import re
import unicodedata
from typing import Optional

ZERO_WIDTH_RE = re.compile(r"[\u200B-\u200D\uFEFF]")
WHITESPACE_RE = re.compile(r"[^\S\n]+")


def normalize_text(text: Optional[str]) -> str:
    """Decodes HTML entities and folds look-alike characters.

    Args:
        text: Raw prompt text, possibly HTML-escaped by an upstream form.

    Returns:
        The normalised text; an empty string for missing input.
    """
    if not text:
        return ""
    text = html.unescape(text)
    text = unicodedata.normalize("NFKC", text)
    text = ZERO_WIDTH_RE.sub("", text)
    return WHITESPACE_RE.sub(" ", text)
