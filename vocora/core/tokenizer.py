"""
Vocora Tokenizer
Splits generated narratives into word and separator tokens and normalizes words
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import AbstractSet, Tuple

# A run of word characters, or a run of anything else
_TOKEN_PATTERN = re.compile(r'\w+|\W+')
_NON_WORD = re.compile(r'\W+')


@dataclass(frozen=True)
class Token:
    """A contiguous span of a narrative"""
    text: str
    index: int   # position in the token sequence
    start: int   # character offset into the narrative
    is_word: bool

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def normalized(self) -> str:
        return normalize(self.text)


@lru_cache(maxsize=256)
def tokenize(narrative: str) -> Tuple[Token, ...]:
    """
    Split a narrative into alternating word and separator tokens

    Args:
        narrative: Free text, usually a generated story

    Returns:
        Ordered tokens whose texts concatenate back to the narrative
    """
    tokens = []
    for i, match in enumerate(_TOKEN_PATTERN.finditer(narrative)):
        text = match.group(0)
        tokens.append(Token(
            text=text,
            index=i,
            start=match.start(),
            is_word=_NON_WORD.match(text) is None
        ))
    return tuple(tokens)


def normalize(token: str) -> str:
    """Lower-case a token and strip every non-word character"""
    return _NON_WORD.sub('', token.lower())


def is_tracked(normalized_token: str, word_set: AbstractSet[str]) -> bool:
    """Whether a normalized token belongs to a set of normalized words"""
    if not normalized_token:
        return False
    return normalized_token in word_set


def normalize_words(words) -> set:
    """Build a normalized word set, dropping entries that normalize to nothing"""
    result = set()
    for word in words:
        norm = normalize(word)
        if norm:
            result.add(norm)
    return result
