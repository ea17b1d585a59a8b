from __future__ import annotations

import hashlib
import math
import re
from typing import Protocol

_WORD_PATTERN = re.compile(r"[a-z0-9\+#\.]*[a-z0-9\+#]")


class EmbeddingProvider(Protocol):
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per input text."""


class HashedBagOfWordsProvider:
    """Deterministic lexical vectors: each word is hashed into a fixed bucket.

    This is a secondary lexical similarity, not a language model. Callers that
    have real embeddings inject their own :class:`EmbeddingProvider`.
    """

    def __init__(self, dimension: int = 256, *, stop_words: frozenset[str] = frozenset()) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be greater than 0")
        self.dimension = dimension
        self.stop_words = stop_words

    def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(text) for text in texts]

    def _bucket(self, word: str) -> int:
        digest = hashlib.sha256(word.encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "big") % self.dimension

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for word in _WORD_PATTERN.findall(text.lower()):
            if word in self.stop_words:
                continue
            vector[self._bucket(word)] += 1.0
        norm = math.sqrt(sum(value * value for value in vector))
        if norm <= 0:
            return vector
        return [value / norm for value in vector]


def cosine_similarity(left: list[float], right: list[float]) -> float:
    if len(left) != len(right):
        return 0.0
    dot = sum(a * b for a, b in zip(left, right))
    left_norm = math.sqrt(sum(a * a for a in left))
    right_norm = math.sqrt(sum(b * b for b in right))
    if left_norm <= 0 or right_norm <= 0:
        return 0.0
    return dot / (left_norm * right_norm)


def similarity_percent(provider: EmbeddingProvider, left: str, right: str) -> float:
    """Cosine similarity of two texts under ``provider`` scaled to 0-100."""
    if not left.strip() or not right.strip():
        return 0.0
    vectors = provider.embed([left, right])
    if len(vectors) != 2:
        raise ValueError("embedding provider must return one vector per text")
    score = cosine_similarity(vectors[0], vectors[1]) * 100.0
    if math.isnan(score):
        return 0.0
    return max(0.0, min(100.0, score))
