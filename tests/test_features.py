"""Tests for vocabulary building and document-feature vectors."""

from __future__ import annotations

import pytest

from talk_gender_classifier.features import (
    CountVectorizer,
    Vocabulary,
    build_matrix,
    build_vector,
)
from talk_gender_classifier.models import FeatureVector
from talk_gender_classifier.preprocessing import CleaningRules


class TestVocabulary:
    def test_sorted_and_deduplicated(self) -> None:
        vocab = Vocabulary.build([["world", "hello", "world"], ["again", "hello"]])
        assert vocab.terms == ("again", "hello", "world")
        assert len(vocab) == 3

    def test_indices_are_stable_across_document_order(self) -> None:
        docs = [["beta", "alpha"], ["gamma"]]
        assert Vocabulary.build(docs) == Vocabulary.build(list(reversed(docs)))

    def test_lookup(self) -> None:
        vocab = Vocabulary(["b", "a"])
        assert vocab.index("a") == 0
        assert vocab.index("b") == 1
        assert vocab.index("missing") is None
        assert vocab.term(1) == "b"
        assert "a" in vocab
        assert "missing" not in vocab

    def test_min_count(self) -> None:
        vocab = Vocabulary.build([["rare", "common"], ["common"]], min_count=2)
        assert vocab.terms == ("common",)

    def test_max_size_keeps_most_frequent(self) -> None:
        docs = [["a", "b", "b", "c", "c", "c", "d", "d", "d"]]
        vocab = Vocabulary.build(docs, max_size=2)
        # c and d tie on frequency and both beat b
        assert vocab.terms == ("c", "d")

    def test_invalid_parameters(self) -> None:
        with pytest.raises(ValueError):
            Vocabulary.build([["a"]], min_count=0)
        with pytest.raises(ValueError):
            Vocabulary.build([["a"]], max_size=0)

    def test_empty(self) -> None:
        vocab = Vocabulary.build([[], []])
        assert len(vocab) == 0

    def test_list_round_trip(self) -> None:
        vocab = Vocabulary(["x", "y"])
        assert Vocabulary.from_list(vocab.to_list()) == vocab


class TestBuildVector:
    def test_raw_counts(self) -> None:
        vocab = Vocabulary(["cat", "dog"])
        vec = build_vector(["dog", "cat", "dog"], vocab)
        assert vec.size == 2
        assert vec.counts == {0: 1, 1: 2}
        assert vec.to_dense() == [1, 2]
        assert vec.total == 3

    def test_unknown_tokens_dropped(self) -> None:
        vocab = Vocabulary(["cat"])
        vec = build_vector(["cat", "unicorn"], vocab)
        assert vec.counts == {0: 1}
        assert len(vocab) == 1

    def test_empty_document_is_all_zero(self) -> None:
        vocab = Vocabulary(["cat", "dog"])
        vec = build_vector([], vocab)
        assert vec == FeatureVector(size=2, counts={})
        assert vec.is_empty
        assert vec.to_dense() == [0, 0]

    def test_build_matrix(self) -> None:
        vocab = Vocabulary(["cat", "dog"])
        rows = build_matrix([["cat"], ["dog", "dog"], []], vocab)
        assert [r.to_dense() for r in rows] == [[1, 0], [0, 2], [0, 0]]


class TestCountVectorizer:
    def test_fit_transform(self) -> None:
        vec = CountVectorizer()
        rows = vec.fit_transform(["Gardens grow.", "Engines roar, engines run."])
        assert vec.vocabulary_.terms == ("engines", "gardens", "grow", "roar", "run")
        assert rows[1].to_dense() == [2, 0, 0, 1, 1]

    def test_transform_ignores_unseen_terms(self) -> None:
        vec = CountVectorizer().fit(["gardens grow"])
        (row,) = vec.transform(["gardens and rockets"])
        assert row.counts == {0: 1}
        assert row.size == 2

    def test_unfitted_raises(self) -> None:
        with pytest.raises(RuntimeError, match="not been fitted"):
            CountVectorizer().transform(["anything"])

    def test_min_count_and_max_features(self) -> None:
        vec = CountVectorizer(min_count=2).fit(["talk talk idea", "idea story"])
        assert vec.vocabulary_.terms == ("idea", "talk")
        vec = CountVectorizer(max_features=1).fit(["talk talk idea"])
        assert vec.vocabulary_.terms == ("talk",)

    def test_round_trip(self) -> None:
        vec = CountVectorizer(rules=CleaningRules(min_token_length=3), min_count=1)
        vec.fit(["many words in this talk"])
        restored = CountVectorizer.from_dict(vec.to_dict())
        assert restored.vocabulary_ == vec.vocabulary_
        assert restored.rules == vec.rules
        assert restored.transform(["talk words"])[0] == vec.transform(["talk words"])[0]
