"""Multinomial Naive Bayes over raw term-count vectors.

Training estimates, for each class ``c`` and vocabulary term ``t``::

    prior(c)         = docs labeled c / all docs
    likelihood(t|c)  = (alpha + count(t, c)) / (alpha * |V| + total count in c)

and stores both as natural logarithms. With ``alpha = 1`` this is Laplace
smoothing. Prediction picks the class with the highest
``log prior + sum(count * log likelihood)``; equal scores resolve to the
class that sorts first.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from .models import (
    FeatureVector,
    InvalidInputError,
    LabeledExample,
    VocabularyMismatchError,
)

logger = logging.getLogger(__name__)


@dataclass
class NaiveBayesClassifier:
    """Multinomial Naive Bayes classifier with additive smoothing.

    Args:
        alpha: Smoothing constant added to every term count (1.0 = Laplace).
    """

    alpha: float = 1.0

    # Learned parameters
    classes_: list[str] = field(default_factory=list, repr=False)
    class_log_prior_: dict[str, float] = field(default_factory=dict, repr=False)
    feature_log_prob_: dict[str, list[float]] = field(default_factory=dict, repr=False)
    n_features_: int = 0
    class_count_: dict[str, int] = field(default_factory=dict, repr=False)

    @property
    def is_fitted(self) -> bool:
        return bool(self.classes_)

    def fit(
        self,
        vectors: list[FeatureVector],
        labels: list[str],
    ) -> "NaiveBayesClassifier":
        """Estimate priors and smoothed likelihoods.

        Args:
            vectors: Term-count vectors, all over the same vocabulary.
            labels: Class label of each vector.

        Returns:
            Self (for method chaining).

        Raises:
            InvalidInputError: If the input is empty, has fewer than two
                classes, lengths differ, or vectors disagree on vocabulary size.
        """
        if self.alpha <= 0:
            raise InvalidInputError(f"alpha must be positive, got {self.alpha}")
        if len(vectors) != len(labels):
            raise InvalidInputError(
                f"vectors ({len(vectors)}) and labels ({len(labels)}) must have same length"
            )
        if not vectors:
            raise InvalidInputError("Cannot train on an empty training set")

        sizes = {vec.size for vec in vectors}
        if len(sizes) != 1:
            raise InvalidInputError(
                f"Training vectors come from different vocabularies (sizes {sorted(sizes)})"
            )
        vocab_size = sizes.pop()

        # Sum term counts per class
        class_counts: dict[str, int] = defaultdict(int)
        term_counts: dict[str, list[int]] = {}
        for vec, label in zip(vectors, labels):
            class_counts[label] += 1
            sums = term_counts.setdefault(label, [0] * vocab_size)
            for idx, count in vec.counts.items():
                sums[idx] += count

        if len(class_counts) < 2:
            raise InvalidInputError(
                f"Training set needs at least 2 classes, found {sorted(class_counts)}"
            )

        self.classes_ = sorted(class_counts)
        self.n_features_ = vocab_size
        self.class_count_ = {cls: class_counts[cls] for cls in self.classes_}
        n_total = len(labels)

        self.class_log_prior_ = {
            cls: math.log(class_counts[cls] / n_total) for cls in self.classes_
        }

        self.feature_log_prob_ = {}
        for cls in self.classes_:
            sums = term_counts[cls]
            denominator = sum(sums) + self.alpha * vocab_size
            self.feature_log_prob_[cls] = [
                math.log((count + self.alpha) / denominator) for count in sums
            ]

        logger.debug(
            "Trained Naive Bayes on %d documents, %d terms, classes %s",
            n_total,
            vocab_size,
            self.class_count_,
        )
        return self

    def predict(self, vectors: list[FeatureVector]) -> list[str]:
        """Predict class labels for a batch of feature vectors.

        Raises:
            RuntimeError: If the classifier has not been fitted.
            VocabularyMismatchError: If a vector has the wrong vocabulary size.
        """
        self._check_fitted()
        return [self._predict_single(vec) for vec in vectors]

    def predict_proba(self, vectors: list[FeatureVector]) -> list[dict[str, float]]:
        """Posterior class probabilities, normalised with log-sum-exp."""
        self._check_fitted()
        return [self._predict_proba_single(vec) for vec in vectors]

    def log_scores(self, vec: FeatureVector) -> dict[str, float]:
        """Unnormalized log posterior score of each class, in class order."""
        self._check_fitted()
        if vec.size != self.n_features_:
            raise VocabularyMismatchError(
                f"Vector has {vec.size} features but the model was trained on "
                f"{self.n_features_}; project it through the training vocabulary"
            )
        if vec.counts and not 0 <= min(vec.counts) <= max(vec.counts) < self.n_features_:
            raise VocabularyMismatchError(
                f"Vector has feature indices outside 0..{self.n_features_ - 1}"
            )
        scores: dict[str, float] = {}
        for cls in self.classes_:
            score = self.class_log_prior_[cls]
            log_probs = self.feature_log_prob_[cls]
            for idx, count in vec.counts.items():
                score += count * log_probs[idx]
            scores[cls] = score
        return scores

    def _predict_single(self, vec: FeatureVector) -> str:
        scores = self.log_scores(vec)
        # max() keeps the first of equal scores, and classes_ is sorted
        return max(scores, key=scores.get)  # type: ignore[arg-type]

    def _predict_proba_single(self, vec: FeatureVector) -> dict[str, float]:
        log_scores = self.log_scores(vec)
        max_score = max(log_scores.values())
        exp_scores = {cls: math.exp(s - max_score) for cls, s in log_scores.items()}
        total = sum(exp_scores.values())
        return {cls: score / total for cls, score in exp_scores.items()}

    def _check_fitted(self) -> None:
        if not self.classes_:
            raise RuntimeError("Classifier has not been fitted. Call fit() first.")

    def most_informative_features(
        self,
        class_name: str,
        top_n: int = 20,
    ) -> list[tuple[int, float]]:
        """Feature indices most indicative of ``class_name``.

        Scores each term by its log likelihood under the class minus the
        average log likelihood under the other classes.

        Returns:
            ``(feature_index, log_likelihood_ratio)`` pairs, strongest first.

        Raises:
            ValueError: If class_name is not a fitted class.
        """
        if class_name not in self.classes_:
            raise ValueError(f"Unknown class: {class_name}. Known: {self.classes_}")

        target = self.feature_log_prob_[class_name]
        others = [self.feature_log_prob_[c] for c in self.classes_ if c != class_name]

        ratios: list[tuple[int, float]] = []
        for idx in range(self.n_features_):
            avg_other = sum(lp[idx] for lp in others) / len(others)
            ratios.append((idx, round(target[idx] - avg_other, 4)))

        ratios.sort(key=lambda x: (-x[1], x[0]))
        return ratios[:top_n]

    def to_dict(self) -> dict:
        """Serialize classifier state."""
        return {
            "alpha": self.alpha,
            "classes": self.classes_,
            "class_count": self.class_count_,
            "class_log_prior": self.class_log_prior_,
            "feature_log_prob": self.feature_log_prob_,
            "n_features": self.n_features_,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NaiveBayesClassifier":
        """Deserialize classifier from a dictionary."""
        nb = cls(alpha=data["alpha"])
        nb.classes_ = list(data["classes"])
        nb.class_count_ = dict(data.get("class_count", {}))
        nb.class_log_prior_ = dict(data["class_log_prior"])
        nb.feature_log_prob_ = {k: list(v) for k, v in data["feature_log_prob"].items()}
        nb.n_features_ = data["n_features"]
        return nb


def train(examples: Iterable[LabeledExample], alpha: float = 1.0) -> NaiveBayesClassifier:
    """Fit a Naive Bayes model on labeled feature vectors."""
    examples = list(examples)
    return NaiveBayesClassifier(alpha=alpha).fit(
        [ex.vector for ex in examples],
        [ex.label for ex in examples],
    )


def predict(model: NaiveBayesClassifier, vector: FeatureVector) -> str:
    """Most probable class for a single vector."""
    return model.predict([vector])[0]
