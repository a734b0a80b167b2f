"""Rule-based auditing of image generation prompts."""

from .ages import AgeMatch, AgePhraseDetector, AgeTemplate, AgeVariant
from .auditor import AuditResult, EnrichedAuditResult, PromptAuditor, PromptTrigger
from .lexicon import DEFAULT_WORD_LISTS, Lexicon, load_word_lists
from .matcher import CategoryMatcher
from .patterns import Boundary, CompiledPattern, ConfigurationError, compile_word

__all__ = [
    "AgeMatch",
    "AgePhraseDetector",
    "AgeTemplate",
    "AgeVariant",
    "AuditResult",
    "Boundary",
    "CategoryMatcher",
    "CompiledPattern",
    "ConfigurationError",
    "DEFAULT_WORD_LISTS",
    "EnrichedAuditResult",
    "Lexicon",
    "PromptAuditor",
    "PromptTrigger",
    "compile_word",
    "load_word_lists",
]
