"""Language-agnostic tokenisation used for relevance scoring."""
from __future__ import annotations

import itertools
import unicodedata
from typing import Iterator, List, Tuple

_WORD = "word"
_DENSE = "dense"

# Scripts that do not separate words with whitespace.
_DENSE_RANGES: Tuple[Tuple[int, int], ...] = (
    (0x0E00, 0x0EFF),  # Thai, Lao
    (0x1000, 0x109F),  # Myanmar
    (0x1780, 0x17FF),  # Khmer
    (0x3040, 0x30FF),  # Hiragana, Katakana
    (0x31F0, 0x31FF),  # Katakana phonetic extensions
    (0x3400, 0x4DBF),  # CJK extension A
    (0x4E00, 0x9FFF),  # CJK unified ideographs
    (0xF900, 0xFAFF),  # CJK compatibility ideographs
    (0x20000, 0x2FA1F),  # CJK extensions B and later
)


def _is_dense(char: str) -> bool:
    codepoint = ord(char)
    for low, high in _DENSE_RANGES:
        if low <= codepoint <= high:
            return True
    return False


def _classify(char: str) -> str | None:
    if _is_dense(char):
        return _DENSE
    # Letters, numbers and combining marks belong to words.
    if unicodedata.category(char)[0] in {"L", "N", "M"}:
        return _WORD
    return None


def _segment_dense(run: str) -> Iterator[str]:
    for index, char in enumerate(run):
        yield char
        if index + 1 < len(run):
            yield run[index : index + 2]


def tokenize(text: str) -> List[str]:
    """Return the ordered, normalised tokens of *text*.

    Text is NFKC-normalised and case-folded. Whitespace-delimited scripts
    yield one token per word; scripts written without spaces yield
    overlapping character unigrams and bigrams.
    """

    if not text:
        return []

    normalized = unicodedata.normalize("NFKC", text).casefold()
    tokens: List[str] = []
    for kind, chars in itertools.groupby(normalized, key=_classify):
        if kind is None:
            continue
        run = "".join(chars)
        if kind == _DENSE:
            tokens.extend(_segment_dense(run))
        else:
            tokens.append(run)
    return tokens


__all__ = ["tokenize"]
