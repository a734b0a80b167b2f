"""Detection of phrases stating an age under eighteen.

Ages are declared as `AgeVariant` spellings (including common misspellings
and "7teen"-style hybrids) and crossed with `AgeTemplate` skeletons such as
``{age} {years} {old}``. Every template compiles to one regex holding an
alternation over all spellings; a hit is resolved back to an integer age by
looking the captured numeral up in the variant table.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Sequence, Tuple

from .matcher import first_spans, render_spans
from .patterns import ALNUM, NON_ALNUM_RUN, trim_non_alphanumeric

TEEN = "{teen}"
TEEN_SUFFIXES = ("teen", "ten", "tein", "tien", "tn")
YEARS = ("y", "yr", "yrs", "years", "year", "anos")
OLD = ("o", "old")
PRONOUNS = ("she's", "he's", "shes", "hes", "she is", "he is")
# Up to three free words between the pronoun and the numeral.
GAP = f"(?:[{ALNUM}]+[^{ALNUM}]+){{0,3}}"

SLOT_RE = re.compile(r"\{(\w+)\}")
SEPARATOR_RUN_RE = re.compile(f"[^{ALNUM}]+")


@dataclass(frozen=True)
class AgeVariant:
    """All accepted spellings of one age.

    Spellings containing ``{teen}`` are expanded with every teen suffix, both
    joined to the stem and separated from it by a space.
    """

    age: int
    spellings: Tuple[str, ...]

    def expand(self) -> List[str]:
        out: List[str] = []
        for spelling in self.spellings:
            if TEEN not in spelling:
                candidates = [spelling]
            else:
                stem = spelling.replace(TEEN, "").strip()
                candidates = []
                for teen in TEEN_SUFFIXES:
                    candidates += [stem + teen, f"{stem} {teen}"]
            for c in candidates:
                if c not in out:
                    out.append(c)
        return out


@dataclass(frozen=True)
class AgeTemplate:
    """A phrase skeleton with ``{slot}`` placeholders, e.g. ``aged {age}``."""

    skeleton: str

    @property
    def slots(self) -> List[str]:
        return SLOT_RE.findall(self.skeleton)


@dataclass(frozen=True)
class AgeMatch:
    """Outcome of an age phrase search.

    Attributes:
        found: Whether any template matched.
        age: The resolved age, when the captured numeral is known.
        text: The matched phrase with boundary characters trimmed.
    """

    found: bool = False
    age: Optional[int] = None
    text: Optional[str] = None

    def __bool__(self):
        return self.found and self.age is not None


DEFAULT_AGE_VARIANTS: Tuple[AgeVariant, ...] = (
    AgeVariant(17, ("seven{teen}", "sevn{teen}", "sevem{teen}", "seve{teen}", "7{teen}", "17")),
    AgeVariant(16, ("six{teen}", "sicks{teen}", "sixe{teen}", "6{teen}", "16")),
    AgeVariant(15, ("fif{teen}", "fiv{teen}", "five{teen}", "fife{teen}", "fivve{teen}", "5{teen}", "15")),
    AgeVariant(14, ("four{teen}", "for{teen}", "fore{teen}", "foure{teen}", "4{teen}", "14")),
    AgeVariant(
        13,
        (
            "thir{teen}",
            "3{teen}",
            "ther{teen}",
            "three{teen}",
            "tree{teen}",
            "thee{teen}",
            "thre{teen}",
            "thri{teen}",
            "13",
        ),
    ),
    AgeVariant(12, ("twelve", "twelv", "twelf", "2{teen}", "twel", "12")),
    AgeVariant(11, ("eleven", "eleve", "elevn", "1{teen}", "elvn", "11")),
    AgeVariant(10, ("ten", "tenn", "tene", "10")),
    AgeVariant(9, ("nine", "nien", "nein", "niene", "9")),
    AgeVariant(8, ("eight", "eigt", "eigh", "8")),
    AgeVariant(7, ("seven", "sevn", "sevem", "seve", "7")),
    AgeVariant(6, ("six", "sicks", "sixe", "6")),
    AgeVariant(5, ("five", "fiv", "fife", "fivve", "5")),
    AgeVariant(4, ("four", "for", "fore", "foure", "4")),
    AgeVariant(3, ("three", "thee", "thre", "thri", "3")),
    AgeVariant(2, ("two", "2")),
    AgeVariant(1, ("one", "uno", "1")),
)

# Evaluation order; the first template that matches decides.
DEFAULT_AGE_TEMPLATES: Tuple[AgeTemplate, ...] = (
    AgeTemplate("aged {age}"),
    AgeTemplate("age {age}"),
    AgeTemplate("age of {age}"),
    AgeTemplate("{age} age"),
    AgeTemplate("{age} {old}"),
    AgeTemplate("{age} {years} {old}"),
    AgeTemplate("{age} {years}"),
    AgeTemplate("{age}th birthday"),
    AgeTemplate("{pronoun} {gap}{age}"),
)


def _alternation(values: Sequence[str]) -> str:
    return "|".join(NON_ALNUM_RUN.join(re.escape(p) for p in v.split()) for v in values)


class AgePhraseDetector:
    """Finds the first age phrase in a text and resolves its integer age."""

    def __init__(
        self,
        variants: Sequence[AgeVariant] = DEFAULT_AGE_VARIANTS,
        templates: Sequence[AgeTemplate] = DEFAULT_AGE_TEMPLATES,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.variants = tuple(variants)
        self.templates = tuple(templates)
        self.spellings: Dict[int, List[str]] = {v.age: v.expand() for v in self.variants}
        self.lookup: Dict[str, int] = {}
        for variant in self.variants:
            for spelling in self.spellings[variant.age]:
                # First declared age wins on a shared spelling.
                self.lookup.setdefault(self._key(spelling), variant.age)
        slots = {
            "age": _alternation([s for v in self.variants for s in self.spellings[v.age]]),
            "years": _alternation(YEARS),
            "old": _alternation(OLD),
            "pronoun": _alternation(PRONOUNS),
        }
        self.regexes: List[Tuple[AgeTemplate, Pattern]] = [
            (t, self._compile(t, slots)) for t in self.templates
        ]
        self.logger.info(
            f"Compiled {len(self.regexes)} age templates over {len(self.lookup)} spellings"
        )

    @staticmethod
    def _key(numeral: str) -> str:
        return SEPARATOR_RUN_RE.sub(" ", numeral.lower()).strip()

    @staticmethod
    def _compile(template: AgeTemplate, slots: Dict[str, str]) -> Pattern:
        parts = []
        pos = 0
        for m in SLOT_RE.finditer(template.skeleton):
            parts.append(re.escape(template.skeleton[pos : m.start()]))
            name = m.group(1)
            if name == "gap":
                parts.append(GAP)
            elif name == "age":
                parts.append(f"0*(?P<age>{slots[name]})")
            else:
                parts.append(f"(?P<{name}>{slots[name]})")
            pos = m.end()
        parts.append(re.escape(template.skeleton[pos:]))
        regex_str = "".join(parts)
        # re.escape leaves a backslash before spaces.
        regex_str = re.sub(r"(?:\\?\s)+", lambda _: NON_ALNUM_RUN, regex_str)
        regex_str = f"(?<![{ALNUM}]){regex_str}(?![{ALNUM}])"
        return re.compile(regex_str, re.IGNORECASE)

    def resolve(self, numeral: Optional[str]) -> Optional[int]:
        """Maps a captured numeral such as "sevemteen" back to its age."""
        if not numeral:
            return None
        return self.lookup.get(self._key(numeral))

    def _to_match(self, match) -> AgeMatch:
        return AgeMatch(
            found=True,
            age=self.resolve(match.group("age")),
            text=trim_non_alphanumeric(match.group(0)),
        )

    def detect(self, text: Optional[str]) -> AgeMatch:
        """Returns the first age phrase in `text`, in template order.

        Args:
            text: The text to search.

        Returns:
            An `AgeMatch`; `found` is False when no template matches.
        """
        if not text:
            return AgeMatch()
        for _, regex in self.regexes:
            match = regex.search(text)
            if match:
                return self._to_match(match)
        return AgeMatch()

    def detect_with(self, template: AgeTemplate, text: str) -> AgeMatch:
        """Runs a single template, mostly useful for testing one skeleton."""
        for t, regex in self.regexes:
            if t == template:
                match = regex.search(text or "")
                return self._to_match(match) if match else AgeMatch()
        raise KeyError(template.skeleton)

    def highlight(self, text: Optional[str], render: Callable[[str], str]) -> Optional[str]:
        """Rewrites the first resolvable age phrase found by each template."""
        if not text:
            return text
        spans = first_spans(
            text,
            [regex for _, regex in self.regexes],
            accept=lambda m: self.resolve(m.group("age")) is not None,
        )
        return render_spans(text, spans, render)
