# media_core/summarization.py

import re
from collections import Counter

from .models import Summary

DEFAULT_MAX_SENTENCES = 8
DEFAULT_MIN_SENTENCE_CHARS = 20
MIN_TOKEN_CHARS = 4

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?¡¿])\s+")
# letters only (accented ones included), no digits or underscores
_WORD = re.compile(r"[^\W\d_]+")


def split_sentences(text: str) -> list[str]:
    text = " ".join((text or "").split())
    if not text:
        return []
    return [s for s in _SENTENCE_SPLIT.split(text) if s]


def tokenize(sentence: str) -> list[str]:
    return [w for w in _WORD.findall(sentence.lower()) if len(w) >= MIN_TOKEN_CHARS]


def summarize_text(
    text: str,
    max_sentences: int = DEFAULT_MAX_SENTENCES,
    min_sentence_chars: int = DEFAULT_MIN_SENTENCE_CHARS,
) -> Summary | None:
    """
    Extractive, frequency-scored summary.

    Sentences shorter than `min_sentence_chars` are ignored. Each remaining
    sentence scores the summed corpus frequency of its words (lowercased,
    longer than 3 letters). The best `max_sentences` are returned in their
    original order. Returns None when nothing survives filtering.
    """
    if max_sentences <= 0:
        return None

    sentences = [s for s in split_sentences(text) if len(s) >= min_sentence_chars]
    if not sentences:
        return None

    tokens = [tokenize(s) for s in sentences]
    freq = Counter(t for toks in tokens for t in toks)
    scores = [sum(freq[t] for t in toks) for toks in tokens]

    # highest score first, earlier sentence wins a tie
    ranked = sorted(range(len(sentences)), key=lambda i: (-scores[i], i))
    chosen = sorted(ranked[:max_sentences])

    return Summary(text=" ".join(sentences[i] for i in chosen), sentence_count=len(chosen))
