"""Tests for the multinomial Naive Bayes trainer and predictor."""

from __future__ import annotations

import json
import math

import pytest

from talk_gender_classifier.classifier import NaiveBayesClassifier, predict, train
from talk_gender_classifier.models import (
    FeatureVector,
    InvalidInputError,
    LabeledExample,
    VocabularyMismatchError,
)


def _vec(*dense: int) -> FeatureVector:
    return FeatureVector(size=len(dense), counts={i: c for i, c in enumerate(dense) if c})


@pytest.fixture
def examples() -> list[LabeledExample]:
    """Three terms; term 0 leans 'a', term 2 leans 'b'."""
    return [
        LabeledExample(_vec(3, 1, 0), "a"),
        LabeledExample(_vec(2, 0, 0), "a"),
        LabeledExample(_vec(1, 1, 0), "a"),
        LabeledExample(_vec(0, 1, 4), "b"),
    ]


@pytest.fixture
def model(examples: list[LabeledExample]) -> NaiveBayesClassifier:
    return train(examples)


class TestTraining:
    def test_classes_sorted(self, model: NaiveBayesClassifier) -> None:
        assert model.classes_ == ["a", "b"]
        assert model.n_features_ == 3
        assert model.class_count_ == {"a": 3, "b": 1}

    def test_priors(self, model: NaiveBayesClassifier) -> None:
        assert math.exp(model.class_log_prior_["a"]) == pytest.approx(0.75)
        assert math.exp(model.class_log_prior_["b"]) == pytest.approx(0.25)

    def test_priors_sum_to_one(self, model: NaiveBayesClassifier) -> None:
        total = sum(math.exp(lp) for lp in model.class_log_prior_.values())
        assert total == pytest.approx(1.0)

    def test_likelihoods_sum_to_one(self, model: NaiveBayesClassifier) -> None:
        for cls in model.classes_:
            total = sum(math.exp(lp) for lp in model.feature_log_prob_[cls])
            assert total == pytest.approx(1.0)

    def test_laplace_smoothing(self, model: NaiveBayesClassifier) -> None:
        # class a counts: term0=6, term1=2, term2=0; total 8; |V| = 3
        probs = [math.exp(lp) for lp in model.feature_log_prob_["a"]]
        assert probs == pytest.approx([7 / 11, 3 / 11, 1 / 11])

    def test_custom_alpha(self, examples: list[LabeledExample]) -> None:
        model = train(examples, alpha=0.5)
        probs = [math.exp(lp) for lp in model.feature_log_prob_["b"]]
        # class b counts: 0, 1, 4; total 5; denominator 5 + 0.5 * 3
        assert probs == pytest.approx([0.5 / 6.5, 1.5 / 6.5, 4.5 / 6.5])

    def test_empty_training_set(self) -> None:
        with pytest.raises(InvalidInputError, match="empty"):
            train([])

    def test_single_class(self) -> None:
        with pytest.raises(InvalidInputError, match="at least 2 classes"):
            train([LabeledExample(_vec(1, 0), "a"), LabeledExample(_vec(0, 1), "a")])

    def test_mixed_vocabulary_sizes(self) -> None:
        with pytest.raises(InvalidInputError, match="different vocabularies"):
            train([LabeledExample(_vec(1, 0), "a"), LabeledExample(_vec(0, 1, 1), "b")])

    def test_length_mismatch(self) -> None:
        with pytest.raises(InvalidInputError):
            NaiveBayesClassifier().fit([_vec(1)], ["a", "b"])

    def test_non_positive_alpha(self, examples: list[LabeledExample]) -> None:
        with pytest.raises(InvalidInputError):
            train(examples, alpha=0)


class TestPrediction:
    def test_predicts_by_evidence(self, model: NaiveBayesClassifier) -> None:
        assert predict(model, _vec(0, 0, 3)) == "b"
        assert predict(model, _vec(4, 0, 0)) == "a"

    def test_all_zero_vector_gives_highest_prior(self, model: NaiveBayesClassifier) -> None:
        assert predict(model, _vec(0, 0, 0)) == "a"

    def test_tie_goes_to_first_class(self) -> None:
        model = train([LabeledExample(_vec(1, 0), "y"), LabeledExample(_vec(0, 1), "x")])
        # Equal priors and no evidence
        assert predict(model, _vec(0, 0)) == "x"

    def test_score_formula(self, model: NaiveBayesClassifier) -> None:
        vec = _vec(1, 0, 2)
        scores = model.log_scores(vec)
        expected = (
            model.class_log_prior_["b"]
            + model.feature_log_prob_["b"][0]
            + 2 * model.feature_log_prob_["b"][2]
        )
        assert scores["b"] == pytest.approx(expected)

    def test_batch_predict(self, model: NaiveBayesClassifier) -> None:
        assert model.predict([_vec(0, 0, 3), _vec(4, 0, 0)]) == ["b", "a"]

    def test_predict_proba_normalised(self, model: NaiveBayesClassifier) -> None:
        (proba,) = model.predict_proba([_vec(0, 1, 2)])
        assert sum(proba.values()) == pytest.approx(1.0)
        assert max(proba, key=proba.get) == predict(model, _vec(0, 1, 2))

    def test_vocabulary_mismatch(self, model: NaiveBayesClassifier) -> None:
        with pytest.raises(VocabularyMismatchError, match="3"):
            predict(model, _vec(1, 0))

    @pytest.mark.parametrize("index", [3, 8, -1])
    def test_index_outside_vocabulary(self, model: NaiveBayesClassifier, index: int) -> None:
        with pytest.raises(VocabularyMismatchError, match="outside"):
            predict(model, FeatureVector(size=3, counts={0: 1, index: 1}))

    def test_unfitted(self) -> None:
        with pytest.raises(RuntimeError, match="not been fitted"):
            NaiveBayesClassifier().predict([_vec(1)])

    def test_pure_function(self, model: NaiveBayesClassifier) -> None:
        before = json.dumps(model.to_dict(), sort_keys=True)
        vec = _vec(1, 1, 1)
        predict(model, vec)
        assert json.dumps(model.to_dict(), sort_keys=True) == before
        assert vec.counts == {0: 1, 1: 1, 2: 1}


class TestInformativeFeatures:
    def test_ranked_by_ratio(self, model: NaiveBayesClassifier) -> None:
        ranked = model.most_informative_features("b", top_n=3)
        assert [idx for idx, _ in ranked][0] == 2
        assert ranked[0][1] > 0

    def test_top_n(self, model: NaiveBayesClassifier) -> None:
        assert len(model.most_informative_features("a", top_n=1)) == 1

    def test_unknown_class(self, model: NaiveBayesClassifier) -> None:
        with pytest.raises(ValueError, match="Unknown class"):
            model.most_informative_features("zzz")


class TestSerialization:
    def test_json_round_trip(self, model: NaiveBayesClassifier) -> None:
        data = json.loads(json.dumps(model.to_dict()))
        restored = NaiveBayesClassifier.from_dict(data)
        assert restored.to_dict() == model.to_dict()
        vec = _vec(2, 1, 1)
        assert restored.log_scores(vec) == model.log_scores(vec)
