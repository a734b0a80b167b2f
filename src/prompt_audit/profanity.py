"""Profanity check for prompts, backed by the `better_profanity` word list.

Profanity is not a blocklist category of its own: it is an opt-in final step
of the prompt audit, used where general profanity is unwanted on top of the
NSFW rules.
"""

from __future__ import annotations
import re
from typing import List, Optional

from better_profanity import profanity

# Prompt syntax separates tokens; leetspeak characters such as "$" and "@"
# stay inside them for better_profanity to resolve.
TOKEN_RE = re.compile(r"[^\s,()\[\]{}:|]+")
EDGE_PUNCTUATION = ".!?\"'"

profanity.load_censor_words()


def profane_words(text: Optional[str]) -> List[str]:
    """Returns the distinct profane tokens of `text`, in order of appearance."""
    if not text:
        return []
    found: List[str] = []
    for token in TOKEN_RE.findall(text):
        token = token.strip(EDGE_PUNCTUATION)
        if token and token.lower() not in found and profanity.contains_profanity(token):
            found.append(token.lower())
    return found
