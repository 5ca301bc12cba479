"""Similarity scoring used for automatic short-answer grading."""

from __future__ import annotations

import math
import re
from typing import Protocol

from exam_app.constants.exam_constants import MAX_SIMILARITY_TOKENS

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9\s]")
_JACCARD_WEIGHT = 0.6
_COSINE_WEIGHT = 0.4


class SimilarityScorer(Protocol):
    """Returns a similarity in [0, 1] between a student answer and the reference."""

    async def similarity(self, student_text: str, reference_text: str) -> float:
        ...


def tokenize(text: str) -> list[str]:
    cleaned = _NON_ALPHANUMERIC.sub(" ", text.lower())
    return cleaned.split()[:MAX_SIMILARITY_TOKENS]


class TextSimilarityScorer:
    """Word-overlap scorer: weighted Jaccard and cosine similarity of word sets."""

    async def similarity(self, student_text: str, reference_text: str) -> float:
        return self.score(student_text, reference_text)

    def score(self, student_text: str, reference_text: str) -> float:
        if not student_text.strip() or not reference_text.strip():
            return 0.0

        student_words = set(tokenize(student_text))
        reference_words = set(tokenize(reference_text))
        if not student_words and not reference_words:
            return 1.0
        if not student_words or not reference_words:
            return 0.0

        shared = len(student_words & reference_words)
        jaccard = shared / len(student_words | reference_words)
        # Binary word vectors: the dot product is the shared count, each magnitude is sqrt(set size).
        cosine = shared / math.sqrt(len(student_words) * len(reference_words))
        combined = jaccard * _JACCARD_WEIGHT + cosine * _COSINE_WEIGHT
        return min(1.0, max(0.0, combined))
