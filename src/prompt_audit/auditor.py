"""This module provides the decision layer of the prompt audit engine.

It includes the `PromptAuditor` class, which combines the compiled matchers
of a `Lexicon` into the public checks: metadata and prompt auditing, the
minor/POI inappropriateness classifier, descriptive tag extraction, prompt
highlighting for moderators, and prompt cleaning.
"""

from __future__ import annotations
import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from prometheus_client import Counter as PromCounter

from .lexicon import Lexicon
from .matcher import MatchResult, in_prompt_edit, search_words
from .patterns import CompiledPattern, replace_word
from .profanity import profane_words
from .text import normalize_text

# Prometheus metrics (opt-in via env in app.py)
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "0") == "1"
if PROMETHEUS_ENABLED:
    audit_decisions_total = PromCounter(
        "prompt_audit_decisions_total", "Total audit decisions made", ["pipeline", "outcome"]
    )

# Dropped before classifying: "s-e-x", "teen's", "s.e.x".
EVASION_CHARS_RE = re.compile(r"['.\-]")

MINOR = "minor"
POI = "poi"

HIGHLIGHT_COLORS = {
    "minor": "#7950F2",
    "young": "#339AF0",
    "poi": "#38d9a9",
    "blocked": "#F03E3E",
    "nsfw": "#FD7E14",
}
NEGATIVE_LABEL = '<br><br><span style="color: #777">Negative Prompt:</span><br>'


def span_renderer(color: str) -> Callable[[str], str]:
    def render(word: str) -> str:
        return f'<span style="color: {color}">{word}</span>'

    return render


@dataclass
class AuditResult:
    """The outcome of an audit.

    Attributes:
        blocked_for: Distinct reasons the text was rejected, in order.
        success: True when nothing was found.
    """

    blocked_for: List[str] = field(default_factory=list)
    success: bool = True

    @classmethod
    def blocked(cls, reasons: List[str]) -> "AuditResult":
        return cls(blocked_for=reasons, success=not reasons)

    def to_dict(self) -> Dict[str, Any]:
        return {"blockedFor": list(self.blocked_for), "success": self.success}

    def to_json(self) -> str:
        """Serializes the result to a JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


@dataclass
class PromptTrigger:
    """Structured record of why a prompt was rejected, for moderator review."""

    category: str
    message: str
    matched_word: Optional[str] = None


@dataclass
class EnrichedAuditResult(AuditResult):
    triggers: List[PromptTrigger] = field(default_factory=list)

    @classmethod
    def triggered(cls, trigger: PromptTrigger) -> "EnrichedAuditResult":
        return cls(blocked_for=[trigger.message], success=False, triggers=[trigger])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["triggers"] = [asdict(t) for t in self.triggers]
        return data

    def plain(self) -> AuditResult:
        return AuditResult(blocked_for=list(self.blocked_for), success=self.success)


@dataclass(frozen=True)
class HighlightPass:
    """One highlighting pass: the category, its color, and the rewrite function."""

    category: str
    color: str
    fn: Callable[[Optional[str], Callable[[str], str]], Optional[str]]


@dataclass
class CleanedPrompt:
    prompt: Optional[str] = None
    negative_prompt: Optional[str] = None


def poi_outside_edit(text: str, pattern: CompiledPattern) -> MatchResult:
    """POI decision that ignores names found only inside prompt-editing syntax."""
    if in_prompt_edit(text, pattern):
        return False
    if pattern.search(text):
        return pattern.word
    return False


class PromptAuditor:
    """Audits prompts and image metadata against a compiled `Lexicon`."""

    def __init__(self, lexicon: Lexicon):
        """Initializes the PromptAuditor.

        Args:
            lexicon: The compiled word lists. It is only ever read, so one
                instance may be shared by any number of auditors and threads.
        """
        self.lexicon = lexicon
        self.logger = logging.getLogger(self.__class__.__name__)
        # Later passes see the markup of earlier ones, so order is significant.
        self.highlighters: Tuple[HighlightPass, ...] = (
            HighlightPass("minor", HIGHLIGHT_COLORS["minor"], lexicon.ages.highlight),
            HighlightPass("young", HIGHLIGHT_COLORS["young"], lexicon.young_nouns.highlight),
            HighlightPass("poi", HIGHLIGHT_COLORS["poi"], lexicon.poi.highlight),
            HighlightPass("blocked", HIGHLIGHT_COLORS["blocked"], lexicon.blocked.highlight),
            HighlightPass("nsfw", HIGHLIGHT_COLORS["nsfw"], lexicon.blocked_nsfw.highlight),
        )
        self.negative_highlighters: Tuple[HighlightPass, ...] = (
            HighlightPass(
                "young", HIGHLIGHT_COLORS["young"], lexicon.young_negative_nouns.highlight
            ),
        )

    def _record(self, pipeline: str, result: AuditResult) -> AuditResult:
        outcome = "allow" if result.success else "block"
        if not result.success:
            self.logger.debug(f"{pipeline}: blocked for {result.blocked_for}")
        if PROMETHEUS_ENABLED:
            audit_decisions_total.labels(pipeline=pipeline, outcome=outcome).inc()
        return result

    # --- Single checks ---

    def includes_nsfw(self, text: Optional[str]) -> MatchResult:
        return self.lexicon.nsfw.in_prompt(text)

    def has_nsfw_prompt(self, text: Optional[str]) -> bool:
        """Whether the normalised `text` contains NSFW vocabulary."""
        return bool(self.lexicon.nsfw.in_prompt(normalize_text(text)))

    def includes_poi(self, text: Optional[str], include_edit: bool = False) -> MatchResult:
        """Returns the first person-of-interest name in `text`, or False.

        Args:
            text: The text to search.
            include_edit: When False (the default), names that only appear
                inside prompt-editing syntax such as ``[name|other]`` are
                ignored.
        """
        matcher = None if include_edit else poi_outside_edit
        return self.lexicon.poi.in_prompt(text, matcher)

    def includes_minor_age(self, text: Optional[str]):
        return self.lexicon.ages.detect(text)

    def includes_minor(self, text: Optional[str], negative_prompt: Optional[str] = None) -> bool:
        if not text:
            return False
        return bool(
            self.lexicon.ages.detect(text).found
            or self.lexicon.young_nouns.in_prompt(text)
            or (negative_prompt and self.lexicon.young_negative_nouns.in_prompt(negative_prompt))
        )

    def _classify(
        self,
        text: Optional[str],
        nsfw: bool = False,
        negative_prompt: Optional[str] = None,
    ) -> Optional[Tuple[str, Optional[str]]]:
        """Labels `text` as minor or POI risk, with the word that decided it.

        The minor and POI checks only run once the content is flagged NSFW
        by the caller or contains NSFW vocabulary.

        Returns:
            A `(label, matched_word)` tuple, or None for clean text.
        """
        if not text:
            return None
        text = EVASION_CHARS_RE.sub("", text)
        if not nsfw and not self.includes_nsfw(text):
            return None
        poi = self.includes_poi(text)
        if poi:
            return POI, poi
        age = self.lexicon.ages.detect(text)
        if age:
            return MINOR, f"{age.age} year old"
        noun = self.lexicon.young_nouns.in_prompt(text)
        if noun:
            return MINOR, noun
        if negative_prompt:
            noun = self.lexicon.young_negative_nouns.in_prompt(negative_prompt)
            if noun:
                return MINOR, noun
        return None

    def includes_inappropriate(
        self,
        text: Optional[str],
        nsfw: bool = False,
        negative_prompt: Optional[str] = None,
    ) -> Union[str, bool]:
        """Classifies `text` as "minor", "poi", or False when clean.

        Args:
            text: The prompt to classify.
            nsfw: Whether the content is already known to be NSFW.
            negative_prompt: Optional negative prompt; adult nouns in it are
                a minor signal.
        """
        label = self._classify(text, nsfw, negative_prompt)
        return label[0] if label else False

    # --- Audits ---

    def audit_metadata(self, meta: Optional[Mapping[str, Any]], nsfw: bool) -> AuditResult:
        """Audits image generation metadata, collecting every violation.

        Args:
            meta: The metadata mapping; only its ``prompt`` key is read.
            nsfw: Whether the image is flagged NSFW. NSFW content is checked
                for minor ages and against the stricter NSFW blocklist.

        Returns:
            An `AuditResult` listing every distinct blocklisted word found.
        """
        if not meta:
            return self._record("metadata", AuditResult())
        raw = meta.get("prompt")
        prompt = normalize_text(raw)
        if nsfw:
            age = self.lexicon.ages.detect(prompt)
            if age:
                return self._record("metadata", AuditResult.blocked([f"{age.age} year old"]))
        block_list = self.lexicon.blocked_nsfw if nsfw else self.lexicon.blocked
        blocked_for = block_list.find_all(prompt) if raw else []
        return self._record("metadata", AuditResult.blocked(blocked_for))

    def audit_prompt_enriched(
        self,
        prompt: Optional[str],
        negative_prompt: Optional[str] = None,
        check_profanity: bool = False,
    ) -> EnrichedAuditResult:
        """Audits a generation prompt, stopping at the first violation.

        Checks run in order: minor age phrase, inappropriate content (POI
        first, then minor), the NSFW blocklist, then profanity when asked.

        Args:
            prompt: The prompt to audit.
            negative_prompt: Optional negative prompt.
            check_profanity: Whether to also reject general profanity. Every
                profane word is reported, with one trigger each.

        Returns:
            An `EnrichedAuditResult` holding one reason and trigger, or one
            per word for profanity.
        """
        if not prompt or not prompt.strip():
            return EnrichedAuditResult()
        prompt = normalize_text(prompt)
        negative_prompt = normalize_text(negative_prompt) or None

        age = self.lexicon.ages.detect(prompt)
        if age:
            return EnrichedAuditResult.triggered(
                PromptTrigger("minor_age", f"{age.age} year old", age.text)
            )

        label = self._classify(prompt, negative_prompt=negative_prompt)
        if label:
            kind, word = label
            return EnrichedAuditResult.triggered(PromptTrigger(f"inappropriate_{kind}", kind, word))

        word = self.lexicon.blocked_nsfw.in_prompt(prompt)
        if word:
            return EnrichedAuditResult.triggered(PromptTrigger("nsfw_blocklist", word, word))

        if check_profanity:
            words = profane_words(prompt)
            if words:
                return EnrichedAuditResult(
                    blocked_for=words,
                    success=False,
                    triggers=[PromptTrigger("profanity", w, w) for w in words],
                )

        return EnrichedAuditResult()

    def audit_prompt(
        self,
        prompt: Optional[str],
        negative_prompt: Optional[str] = None,
        check_profanity: bool = False,
    ) -> AuditResult:
        result = self.audit_prompt_enriched(prompt, negative_prompt, check_profanity).plain()
        return self._record("prompt", result)

    # --- Tags ---

    def get_tags_from_prompt(self, text: Optional[str]) -> List[str]:
        """Returns every tag whose words appear in `text`, in declared order."""
        if not text:
            return []
        return [tag for tag, matcher in self.lexicon.tags.items() if matcher.in_prompt(text)]

    # --- Highlighting ---

    def highlight_inappropriate(
        self, text: Optional[str], negative_prompt: Optional[str] = None
    ) -> Optional[str]:
        """Wraps every violating span of `text` in a colored span.

        Passes run in a fixed order (minor age, young noun, POI, blocklist,
        NSFW blocklist); each one sees the output of the previous one.

        Args:
            text: The prompt to render.
            negative_prompt: Optional negative prompt, rendered below the
                prompt with adult nouns highlighted.

        Returns:
            The marked-up prompt.
        """
        if not text:
            return text
        for highlighter in self.highlighters:
            text = highlighter.fn(text, span_renderer(highlighter.color))
        if negative_prompt:
            for highlighter in self.negative_highlighters:
                negative_prompt = highlighter.fn(negative_prompt, span_renderer(highlighter.color))
            text += NEGATIVE_LABEL + negative_prompt
        return text

    # --- Cleaning ---

    def clean_prompt(
        self, prompt: Optional[str], negative_prompt: Optional[str] = None
    ) -> CleanedPrompt:
        """Removes blocklisted words, and minor and POI references from NSFW prompts."""
        if not prompt:
            return CleanedPrompt()
        prompt = normalize_text(prompt)
        negative_prompt = normalize_text(negative_prompt) or None

        for word in self.lexicon.blocked_words:
            prompt = replace_word(prompt, word)

        if self.includes_nsfw(prompt):
            def erase(_: str) -> str:
                return ""

            prompt = self.lexicon.ages.highlight(prompt, erase)
            prompt = self.lexicon.young_nouns.highlight(prompt, erase)
            if negative_prompt:
                negative_prompt = self.lexicon.young_negative_nouns.highlight(
                    negative_prompt, erase
                )
            prompt = self.lexicon.poi.highlight(prompt, erase)

        return CleanedPrompt(prompt=prompt, negative_prompt=negative_prompt)

    def possible_blocked_nsfw_words(self, query: Optional[str]) -> List[str]:
        """Lists NSFW blocklist entries matching the regex `query`."""
        return search_words(self.lexicon.blocked_words, query)
