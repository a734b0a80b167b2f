"""Compilation of word-list entries into boundary-aware, substitution-tolerant regexes.

Each canonical word or phrase becomes a `CompiledPattern` that tolerates
common leetspeak swaps (``1`` for ``i``, ``0`` for ``o``, ...), arbitrary
punctuation or spacing between the words of a phrase, and optionally a
plural suffix. Matches must be flanked by a boundary character or a string
edge so that a banned token is never found inside an unrelated longer word.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Pattern


class ConfigurationError(ValueError):
    """Raised when a word list entry cannot be turned into a usable pattern."""


class Boundary(Enum):
    """Which characters may flank a match."""

    NON_ALPHANUMERIC = "non_alphanumeric"
    PROMPT_SYNTAX = "prompt_syntax"


# Anything that is not an ASCII letter or digit separates words.
ALNUM = "a-zA-Z0-9"
NON_ALNUM_RUN = f"[^{ALNUM}]*"
# Whitespace, comma, and the punctuation used by generation tools for
# weighting and prompt editing, e.g. ``(word:1.2)`` or ``[a|b]``.
PROMPT_SYNTAX_CHARS = r"\s,%~\\$.\-()\[\]{}:|"

BOUNDARY_AFFIXES = {
    Boundary.NON_ALPHANUMERIC: (f"(?<![{ALNUM}])", f"(?![{ALNUM}])"),
    Boundary.PROMPT_SYNTAX: (
        f"(?:^|(?<=[{PROMPT_SYNTAX_CHARS}]))",
        f"(?=[{PROMPT_SYNTAX_CHARS}]|$)",
    ),
}

LEET_CLASSES = {"i": "[il1]", "o": "[o0]", "s": "[sz]", "e": "[e3]"}
LEET_RE = re.compile("[" + "".join(LEET_CLASSES) + "]")
PLURAL_SUFFIX = "[sz]*"
WHITESPACE_RUN_RE = re.compile(r"\s+")
TRIM_RE = re.compile(f"^[^{ALNUM}]+|[^{ALNUM}]+$")


@dataclass(frozen=True)
class CompiledPattern:
    """A word list entry together with the regex that finds it.

    Attributes:
        word: The canonical entry, reported back to callers on a match.
        regex: The compiled, case-insensitive matcher.
    """

    word: str
    regex: Pattern

    def search(self, text: str):
        return self.regex.search(text)


def trim_non_alphanumeric(text: str) -> str:
    """Strips leading and trailing non-alphanumeric characters."""
    return TRIM_RE.sub("", text or "")


def _body(word: str) -> str:
    if "[" in word:
        # Hand-authored fragment; keep the author's regex untouched.
        return WHITESPACE_RUN_RE.sub(NON_ALNUM_RUN, word)
    tokens = [re.escape(tok) for tok in word.lower().split()]
    tokens = [LEET_RE.sub(lambda m: LEET_CLASSES[m.group(0)], tok) for tok in tokens]
    return NON_ALNUM_RUN.join(tokens)


@lru_cache(maxsize=None)
def compile_word(
    word: str,
    pluralize: bool = False,
    boundary: Boundary = Boundary.NON_ALPHANUMERIC,
) -> CompiledPattern:
    """Compiles a canonical word or phrase into a `CompiledPattern`.

    Args:
        word: The word list entry. Entries containing ``[`` are treated as
            raw regex fragments; all others are escaped first.
        pluralize: Whether to accept a trailing run of ``s``/``z``.
        boundary: The set of characters allowed to flank the match.

    Returns:
        The compiled pattern.

    Raises:
        ConfigurationError: If the entry is empty or does not compile.
    """
    if not isinstance(word, str) or not word.strip():
        raise ConfigurationError(f"Word list entries must be non-empty strings, got {word!r}")
    body = _body(word.strip())
    if pluralize:
        body += PLURAL_SUFFIX
    prefix, suffix = BOUNDARY_AFFIXES[boundary]
    try:
        # An unbalanced fragment would otherwise swallow the boundary affixes.
        re.compile(body)
        regex = re.compile(f"{prefix}(?:{body}){suffix}", re.IGNORECASE)
    except re.error as e:
        raise ConfigurationError(f"Invalid pattern for entry {word!r}: {e}") from e
    return CompiledPattern(word=word, regex=regex)


def replace_word(text: str, word: str, replacement: str = "") -> str:
    """Replaces the first boundary-aware occurrence of `word` in `text`.

    Args:
        text: The text to rewrite.
        word: The canonical entry to look for.
        replacement: What to put in place of the matched span.

    Returns:
        The rewritten text, or `text` unchanged when there is no match.
    """
    if not text:
        return text
    match = compile_word(word).search(text)
    if not match:
        return text
    target = trim_non_alphanumeric(match.group(0))
    if not target:
        return text
    start = match.start()
    return text[:start] + text[start:].replace(target, replacement, 1)
