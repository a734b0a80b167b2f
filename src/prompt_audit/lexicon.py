"""Word lists and the compiled registry built from them.

The word lists are plain configuration: a mapping of category name to a list
of canonical entries (and, for ``tags``, tag name to entries). `Lexicon.build`
compiles them once into immutable matchers that every audit call reads.
"""

from __future__ import annotations
import copy
import json
import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .ages import AgePhraseDetector
from .matcher import CategoryMatcher
from .patterns import Boundary, ConfigurationError

logger = logging.getLogger(__name__)

# --- Default Word Lists ---
DEFAULT_WORD_LISTS: Dict[str, Any] = {
    "nsfw": [
        "nsfw",
        "nude",
        "nudes",
        "naked",
        "topless",
        "bottomless",
        "sex",
        "sexy",
        "porn",
        "hentai",
        "explicit",
        "lingerie",
        "erotic",
        "undressed",
        "bikini",
        "cleavage",
        "nipples",
        "seductive",
    ],
    "blocked": [
        "loli",
        "lolicon",
        "shota",
        "shotacon",
        "child porn",
        "cp",
        "csam",
        "pedo",
        "pedophile",
        "bestiality",
        "gore porn",
    ],
    "blockedNsfw": [
        "loli",
        "lolicon",
        "shota",
        "shotacon",
        "child porn",
        "csam",
        "pedo",
        "pedophile",
        "bestiality",
        "underage",
        "preteen",
        "prepubescent",
        "toddler",
        "infant",
        "jailbait",
        "rape",
        "necrophilia",
        "snuff",
    ],
    "youngNoun": [
        "child",
        "children",
        "kid",
        "kiddo",
        "toddler",
        "infant",
        "baby",
        "minor",
        "underage",
        "preteen",
        "tween",
        "schoolgirl",
        "schoolboy",
        "school girl",
        "school boy",
        "loli",
        "shota",
        "elementary school",
        "middle school",
        "kindergarten",
    ],
    "youngNegativeNoun": [
        "adult",
        "mature",
        "old",
        "woman",
        "women",
        "man",
        "men",
        "milf",
        "aged",
    ],
    "youngAdjective": ["tiny", "little", "young", "petite", "small", "smol", "youthful"],
    "youngPartialNoun": ["girl", "boy", "schoolgirl", "schoolboy", "daughter"],
    "poi": [
        "taylor swift",
        "emma watson",
        "scarlett johansson",
        "billie eilish",
        "ariana grande",
        "margot robbie",
        "donald trump",
        "joe biden",
        "barack obama",
        "elon musk",
        "zendaya",
        "jenna ortega",
    ],
    "tags": {
        "anime": ["anime", "manga", "waifu", "chibi", "cel shading"],
        "landscape": ["landscape", "mountain", "forest", "scenery", "valley", "ocean"],
        "portrait": ["portrait", "headshot", "close up", "face"],
        "animal": ["cat", "dog", "horse", "fox", "wolf", "bird"],
        "vehicle": ["car", "truck", "motorcycle", "spaceship", "airplane"],
        "architecture": ["building", "castle", "cathedral", "skyscraper", "interior"],
        "fantasy": ["dragon", "elf", "wizard", "fairy", "magic"],
        "sci-fi": ["cyberpunk", "robot", "android", "spaceship", "mecha"],
    },
}

LIST_CATEGORIES = (
    "nsfw",
    "blocked",
    "blockedNsfw",
    "youngNoun",
    "youngNegativeNoun",
    "youngAdjective",
    "youngPartialNoun",
    "poi",
)
# Dropped from names before POI matching; prompt-editing characters survive.
POI_STRIP_RE = re.compile(r"[^\w\s|:\[\],]")
# Joins a young adjective to a partial noun, e.g. "tiny little schoolgirl".
COMPOSED_JOINER = r"(?:[\s|\w]*|[^\w]+)"


def validate_word_lists(word_lists: Mapping[str, Any]):
    """Checks the shape of a word list mapping.

    Args:
        word_lists: The category mapping to validate.

    Raises:
        ConfigurationError: If a category is missing, is not a list, or holds
            anything other than non-empty strings.
    """
    missing = [k for k in LIST_CATEGORIES + ("tags",) if k not in word_lists]
    if missing:
        raise ConfigurationError(f"Word lists missing categories: {missing}")
    lists = {k: word_lists[k] for k in LIST_CATEGORIES}
    tags = word_lists["tags"]
    if not isinstance(tags, Mapping):
        raise ConfigurationError("Word list category 'tags' must map tag names to lists")
    lists.update({f"tags.{tag}": entries for tag, entries in tags.items()})
    for name, entries in lists.items():
        if not isinstance(entries, list):
            raise ConfigurationError(f"Word list category {name!r} must be a list")
        bad = [e for e in entries if not isinstance(e, str) or not e.strip()]
        if bad:
            raise ConfigurationError(f"Word list category {name!r} has invalid entries: {bad}")


def load_word_lists(path: Optional[str] = None) -> Dict[str, Any]:
    """Loads word lists from a JSON file, layered over the defaults.

    Categories present in the file replace the built-in ones wholesale;
    categories absent from it keep their defaults.

    Args:
        path: Path to a JSON object of category name to entries. When None,
            the defaults are returned.

    Returns:
        The validated word list mapping.

    Raises:
        ConfigurationError: If the file is not a JSON object or fails validation.
    """
    word_lists = copy.deepcopy(DEFAULT_WORD_LISTS)
    if path:
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Word lists at {path} are not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Word lists at {path} must be a JSON object")
        word_lists.update(data)
        logger.info(f"Loaded word lists from {path}: {sorted(data)}")
    validate_word_lists(word_lists)
    return word_lists


def composed_nouns(adjectives: List[str], partial_nouns: List[str]) -> List[str]:
    """Crosses young adjectives with partial nouns into regex entries."""
    return [adj + COMPOSED_JOINER + noun for noun in partial_nouns for adj in adjectives]


def poi_preprocessor(text: str) -> str:
    return POI_STRIP_RE.sub("", text)


@dataclass(frozen=True)
class Lexicon:
    """The compiled, read-only registry shared by every audit call.

    Attributes:
        nsfw: NSFW vocabulary; gates the minor and POI checks.
        blocked: General blocklist, for content not flagged NSFW.
        blocked_nsfw: Stricter blocklist, for content flagged NSFW.
        young_nouns: Young-sounding nouns plus adjective/noun compositions.
        young_negative_nouns: Adult-sounding nouns; a minor signal in a
            negative prompt.
        poi: Person-of-interest names.
        tags: Descriptive tag name to matcher.
        ages: The age phrase detector.
    """

    nsfw: CategoryMatcher
    blocked: CategoryMatcher
    blocked_nsfw: CategoryMatcher
    young_nouns: CategoryMatcher
    young_negative_nouns: CategoryMatcher
    poi: CategoryMatcher
    tags: Mapping[str, CategoryMatcher]
    ages: AgePhraseDetector

    @classmethod
    def build(cls, word_lists: Optional[Mapping[str, Any]] = None) -> "Lexicon":
        """Compiles every category of `word_lists` (defaults when None).

        Raises:
            ConfigurationError: If the word lists are malformed.
        """
        if word_lists is None:
            word_lists = DEFAULT_WORD_LISTS
        validate_word_lists(word_lists)
        nsfw = CategoryMatcher("nsfw", word_lists["nsfw"])
        blocked = CategoryMatcher(
            "blocked", word_lists["blocked"], boundary=Boundary.PROMPT_SYNTAX
        )
        blocked_nsfw = CategoryMatcher(
            "blockedNsfw", word_lists["blockedNsfw"], boundary=Boundary.PROMPT_SYNTAX
        )
        young_nouns = CategoryMatcher(
            "youngNoun",
            list(word_lists["youngNoun"])
            + composed_nouns(word_lists["youngAdjective"], word_lists["youngPartialNoun"]),
            pluralize=True,
        )
        young_negative_nouns = CategoryMatcher(
            "youngNegativeNoun", word_lists["youngNegativeNoun"], pluralize=True
        )
        poi = CategoryMatcher(
            "poi",
            word_lists["poi"],
            preprocessor=poi_preprocessor,
        )
        tags = {
            tag: CategoryMatcher(f"tags.{tag}", entries)
            for tag, entries in word_lists["tags"].items()
        }
        lexicon = cls(
            nsfw=nsfw,
            blocked=blocked,
            blocked_nsfw=blocked_nsfw,
            young_nouns=young_nouns,
            young_negative_nouns=young_negative_nouns,
            poi=poi,
            tags=MappingProxyType(tags),
            ages=AgePhraseDetector(),
        )
        for m in (nsfw, blocked, blocked_nsfw, young_nouns, young_negative_nouns, poi):
            logger.info(f"Compiled {len(m)} patterns for category {m.name}")
        logger.info(f"Compiled {len(tags)} tag categories")
        return lexicon

    @property
    def blocked_words(self) -> List[str]:
        """Every NSFW blocklist entry, for moderator lookups."""
        return [p.word for p in self.blocked_nsfw.patterns]
