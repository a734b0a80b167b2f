"""Category matchers: an ordered list of compiled patterns for one word list."""

from __future__ import annotations
import logging
import re
from typing import Callable, Iterable, List, Match, Optional, Pattern, Tuple, Union

from .patterns import Boundary, CompiledPattern, compile_word, trim_non_alphanumeric

logger = logging.getLogger(__name__)

MatchResult = Union[str, bool]
MatcherFn = Callable[[str, CompiledPattern], MatchResult]
PreprocessorFn = Callable[[str], str]
RenderFn = Callable[[str], str]

MARKUP_OPEN_END = '">'
MARKUP_CLOSE = "</"


class CategoryMatcher:
    """Answers whether, and which, entries of one category occur in a text.

    Patterns are evaluated in list order, so the first entry of the word list
    that matches is the one reported by `in_prompt`.
    """

    def __init__(
        self,
        name: str,
        words: Iterable[str],
        pluralize: bool = False,
        boundary: Boundary = Boundary.NON_ALPHANUMERIC,
        preprocessor: Optional[PreprocessorFn] = None,
    ):
        """Compiles every entry of the category.

        Args:
            name: The category name, used in logs.
            words: The canonical entries, in priority order.
            pluralize: Whether entries accept a plural suffix.
            boundary: Which characters may flank a match.
            preprocessor: Optional normalisation applied to the text first. It
                must map characters independently so highlight spans can be
                traced back to the raw text.

        Raises:
            ConfigurationError: If any entry is empty or fails to compile.
        """
        self.name = name
        self.preprocessor = preprocessor
        self.patterns: List[CompiledPattern] = []
        seen = set()
        for word in words:
            if word in seen:
                continue
            seen.add(word)
            self.patterns.append(compile_word(word, pluralize, boundary))

    def __len__(self) -> int:
        return len(self.patterns)

    def __repr__(self) -> str:
        return f"CategoryMatcher(name={self.name!r}, patterns={len(self.patterns)})"

    def preprocess(self, text: str) -> str:
        text = text.strip()
        if self.preprocessor:
            return self.preprocessor(text)
        return text

    def preprocess_with_offsets(self, text: str) -> Tuple[str, List[int]]:
        """Preprocesses `text` and records where each output character came from.

        The preprocessor is applied one character at a time, so it must treat
        characters independently (dropping punctuation, for instance).

        Returns:
            The preprocessed text and, for each of its characters, the index
            of the source character in `text`.
        """
        lead = len(text) - len(text.lstrip())
        stripped = text.strip()
        if not self.preprocessor:
            return stripped, list(range(lead, lead + len(stripped)))
        pieces: List[str] = []
        offsets: List[int] = []
        for i, ch in enumerate(stripped):
            piece = self.preprocessor(ch)
            pieces.append(piece)
            offsets.extend([lead + i] * len(piece))
        return "".join(pieces), offsets

    def in_prompt(self, text: Optional[str], matcher: Optional[MatcherFn] = None) -> MatchResult:
        """Returns the first entry found in `text`, or False.

        Args:
            text: The text to search.
            matcher: Optional decision function replacing the plain regex
                test; it returns the reported word or False.
        """
        if not text:
            return False
        text = self.preprocess(text)
        for pattern in self.patterns:
            if matcher:
                result = matcher(text, pattern)
                if result is not False:
                    return result
                continue
            if pattern.search(text):
                return pattern.word
        return False

    def find_all(self, text: Optional[str]) -> List[str]:
        """Returns every entry found in `text`, in list order."""
        if not text:
            return []
        text = self.preprocess(text)
        return [p.word for p in self.patterns if p.search(text)]

    def highlight(self, text: Optional[str], render: RenderFn) -> Optional[str]:
        """Rewrites the first matched span of every matching entry.

        Each pattern rewrites only the first occurrence it finds that no
        earlier pattern already claimed, so repeated occurrences of the same
        entry are not all rewritten. Matches are found in the preprocessed
        text and mapped back, so a name written as "taylor-swift" is
        rewritten whole.

        Args:
            text: The text to rewrite.
            render: Maps the matched span to its replacement.

        Returns:
            The rewritten text.
        """
        if not text:
            return text
        processed, offsets = self.preprocess_with_offsets(text)
        spans = first_spans(processed, [p.regex for p in self.patterns])
        return render_spans(text, [(offsets[s], offsets[e - 1] + 1) for s, e in spans], render)


def in_prompt_edit(text: str, pattern: CompiledPattern) -> bool:
    """Whether every occurrence of `pattern` sits inside prompt-editing syntax.

    An occurrence is inside prompt-editing syntax when it is enclosed by
    ``[`` and ``]`` and the bracketed block alternates (``[a|b]``, more than
    one non-empty ``|`` segment) or blends (``[a:b:0.5]``, more than two
    non-empty ``:`` segments).
    """
    matches = list(pattern.regex.finditer(text))
    if not matches:
        return False
    return all(_inside_edit_block(text, m.start(), m.end()) for m in matches)


def _inside_edit_block(text: str, start: int, end: int) -> bool:
    open_at = text.rfind("[", 0, start)
    if open_at == -1 or "]" in text[open_at:start]:
        return False
    close_at = text.find("]", end)
    if close_at == -1:
        return False
    block = text[open_at + 1 : close_at]
    pipes = [seg for seg in block.split("|") if seg.strip()]
    colons = [seg for seg in block.split(":") if seg.strip()]
    return len(pipes) > 1 or len(colons) > 2


def search_words(words: Iterable[str], query: Optional[str]) -> List[str]:
    """Returns the entries of `words` matched by the regex `query`.

    Used by moderators to find which blocklist entry caused a rejection.
    An empty or invalid query matches nothing.
    """
    if not query:
        return []
    try:
        regex = re.compile(query, re.IGNORECASE)
    except re.error as e:
        logger.warning(f"Ignoring invalid word search {query!r}: {e}")
        return []
    return [w for w in words if regex.search(w)]


def trimmed_span(match: Match) -> Optional[Tuple[int, int]]:
    """The span of `match` without its leading and trailing non-alphanumerics."""
    raw = match.group(0)
    word = trim_non_alphanumeric(raw)
    if not word:
        return None
    start = match.start() + raw.find(word)
    return start, start + len(word)


def first_spans(
    text: str,
    regexes: Iterable[Pattern],
    accept: Optional[Callable[[Match], bool]] = None,
) -> List[Tuple[int, int]]:
    """Claims, per regex in order, the first span not already claimed.

    Earlier regexes win any overlap, so a span is never rendered twice.

    Args:
        text: The text to search.
        regexes: The matchers, in priority order.
        accept: Optional filter rejecting individual matches.

    Returns:
        The claimed `(start, end)` spans.
    """
    claimed: List[Tuple[int, int]] = []
    for regex in regexes:
        for match in regex.finditer(text):
            if accept and not accept(match):
                continue
            span = trimmed_span(match)
            if span is None:
                continue
            if any(span[0] < end and start < span[1] for start, end in claimed):
                continue
            claimed.append(span)
            break
    return claimed


def already_rendered(text: str, start: int, end: int) -> bool:
    """Whether the span is the body of a ``<span ...>word</span>`` marker."""
    return text.endswith(MARKUP_OPEN_END, 0, start) and text.startswith(MARKUP_CLOSE, end)


def render_spans(text: str, spans: Iterable[Tuple[int, int]], render: RenderFn) -> str:
    """Replaces each non-overlapping span of `text` with its rendering.

    Spans that already sit inside a marker are left alone, so rendering the
    output again does not nest markers.
    """
    for start, end in sorted(spans, reverse=True):
        if already_rendered(text, start, end):
            continue
        text = text[:start] + render(text[start:end]) + text[end:]
    return text
