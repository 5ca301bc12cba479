import asyncio

import pytest

from exam_app.core.services.similarity import TextSimilarityScorer, tokenize


def test_tokenize_lowercases_and_strips_punctuation():
    assert tokenize("A Router, obviously!") == ["a", "router", "obviously"]


def test_identical_answers_score_one():
    scorer = TextSimilarityScorer()

    assert scorer.score("Router!", "router") == pytest.approx(1.0)


def test_disjoint_and_blank_answers_score_zero():
    scorer = TextSimilarityScorer()

    assert scorer.score("switch", "router") == 0.0
    assert scorer.score("   ", "router") == 0.0
    assert scorer.score("router", "") == 0.0


def test_partial_overlap_blends_jaccard_and_cosine():
    scorer = TextSimilarityScorer()

    # jaccard 1/3, cosine 1/2
    assert scorer.score("alpha beta", "alpha gamma") == pytest.approx(0.6 / 3 + 0.4 / 2)


def test_async_similarity_matches_score():
    scorer = TextSimilarityScorer()

    value = asyncio.run(scorer.similarity("last in first out", "a stack is last in first out"))

    assert value == pytest.approx(scorer.score("last in first out", "a stack is last in first out"))
    assert 0.0 < value < 1.0
