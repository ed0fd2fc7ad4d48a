"""Text normalization for reaction prediction.

Turns raw chat text into a *document*: an ordered list of normalized terms.
Chat platforms encode links as ``<url|label>``; only the human-readable label
is kept so that URLs do not flood the vocabulary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Greedy on purpose: the label is whatever follows the last ``|``.
LINK_RE = re.compile(r"<.*\|(.*)>")

LEADING_PUNCTUATION = "'\"("
TRAILING_PUNCTUATION = ",;:.!?'\")"


@dataclass(frozen=True)
class Tokenizer:
    """Whitespace tokenizer with link unwrapping and punctuation trimming.

    Instances hold no mutable state and may be shared between threads.

    Args:
        leading_chars: Characters stripped from the start of each token.
        trailing_chars: Characters stripped from the end of each token.
        lowercase: Case-fold terms.
    """

    leading_chars: str = LEADING_PUNCTUATION
    trailing_chars: str = TRAILING_PUNCTUATION
    lowercase: bool = True

    def tokenize(self, text: str) -> list[str]:
        """Split ``text`` into normalized terms.

        Tokens that are nothing but punctuation are dropped, so
        ``tokenize(" ".join(tokenize(text)))`` returns the same terms.
        """
        if not text:
            return []

        terms: list[str] = []
        for token in text.split():
            term = self.normalize(token)
            if term:
                terms.append(term)
        return terms

    def normalize(self, token: str) -> str:
        """Normalize a single whitespace-free token."""
        match = LINK_RE.search(token)
        if match:
            token = match.group(1)

        token = token.lstrip(self.leading_chars).rstrip(self.trailing_chars)
        if self.lowercase:
            token = token.lower()
        return token


_DEFAULT_TOKENIZER = Tokenizer()


def tokenize(text: str) -> list[str]:
    """Tokenize ``text`` with the default :class:`Tokenizer`."""
    return _DEFAULT_TOKENIZER.tokenize(text)
