"""End-to-end experiment: clean, vectorize, resample, split, train, evaluate.

Example::

    corpus = load_corpus("talks.csv")
    config = PipelineConfig(strategy="both", seed=7)
    result = run_experiment(corpus, config)
    print(result.test_metrics.summary())
    result.classifier.save("model.json")
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Optional

from .classifier import NaiveBayesClassifier
from .features import CountVectorizer, Vocabulary
from .metrics import ClassificationMetrics, evaluate
from .models import (
    ConfigurationError,
    Corpus,
    ResampleStrategy,
    VocabularyScope,
)
from .preprocessing import CleaningRules, get_stopwords, load_stopwords
from .sampling import (
    DEFAULT_SPLIT_RATIOS,
    class_distribution,
    resample,
    shuffled,
    split_dataset,
    validate_split_ratios,
)

logger = logging.getLogger(__name__)

MODEL_FORMAT_VERSION = "1.0"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class PipelineConfig:
    """All options of one experiment run.

    Args:
        stopword_language: Built-in stopword list (``english`` or ``none``).
        stopwords_file: Newline-separated stopword file; overrides the language.
        min_token_length: Shortest token kept after cleaning.
        split_ratios: (train, dev, test) fractions, summing to 1.
        strategy: Resampling applied to the full corpus before splitting.
        target_size: Requested corpus size after resampling.
        minority_fraction: Requested minority share after resampling.
        seed: Seed of the run's random generator.
        vocabulary_scope: Build the vocabulary from the training split only
            (``train``) or from the whole cleaned corpus (``corpus``).
        min_count: Minimum total count for a vocabulary term.
        max_features: Maximum vocabulary size.
        alpha: Naive Bayes smoothing constant.
        shuffle: Shuffle the corpus before the positional split.
    """

    stopword_language: str = "english"
    stopwords_file: Optional[str] = None
    min_token_length: int = 2
    split_ratios: tuple[float, float, float] = DEFAULT_SPLIT_RATIOS
    strategy: ResampleStrategy = ResampleStrategy.NONE
    target_size: Optional[int] = None
    minority_fraction: Optional[float] = None
    seed: int = 42
    vocabulary_scope: VocabularyScope = VocabularyScope.TRAIN
    min_count: int = 1
    max_features: Optional[int] = None
    alpha: float = 1.0
    shuffle: bool = True

    def validate(self) -> "PipelineConfig":
        """Check every option, normalising enum-valued strings.

        Raises:
            ConfigurationError: On the first invalid option.
        """
        try:
            self.strategy = ResampleStrategy(self.strategy)
        except ValueError:
            raise ConfigurationError(
                f"Unknown resampling strategy '{self.strategy}'. "
                f"Choose from {[s.value for s in ResampleStrategy]}"
            ) from None
        try:
            self.vocabulary_scope = VocabularyScope(self.vocabulary_scope)
        except ValueError:
            raise ConfigurationError(
                f"Unknown vocabulary scope '{self.vocabulary_scope}'. "
                f"Choose from {[s.value for s in VocabularyScope]}"
            ) from None

        self.split_ratios = validate_split_ratios(self.split_ratios)

        if self.strategy is ResampleStrategy.NONE and (
            self.target_size is not None or self.minority_fraction is not None
        ):
            raise ConfigurationError(
                "target_size and minority_fraction need a resampling strategy other than 'none'"
            )
        if self.target_size is not None and self.target_size < 2:
            raise ConfigurationError(f"target_size must be at least 2, got {self.target_size}")
        if self.minority_fraction is not None and not 0.0 < self.minority_fraction < 1.0:
            raise ConfigurationError(
                f"minority_fraction must be strictly between 0 and 1, got {self.minority_fraction}"
            )
        if self.min_token_length < 1:
            raise ConfigurationError("min_token_length must be at least 1")
        if self.min_count < 1:
            raise ConfigurationError("min_count must be at least 1")
        if self.max_features is not None and self.max_features < 1:
            raise ConfigurationError("max_features must be at least 1")
        if self.alpha <= 0:
            raise ConfigurationError(f"alpha must be positive, got {self.alpha}")

        if self.stopwords_file is not None:
            if not Path(self.stopwords_file).exists():
                raise ConfigurationError(f"Stopword file not found: {self.stopwords_file}")
        else:
            try:
                get_stopwords(self.stopword_language)
            except ValueError as e:
                raise ConfigurationError(str(e)) from None
        return self

    def cleaning_rules(self) -> CleaningRules:
        if self.stopwords_file is not None:
            stopwords = load_stopwords(self.stopwords_file)
        else:
            stopwords = get_stopwords(self.stopword_language)
        return CleaningRules(min_token_length=self.min_token_length, stopwords=stopwords)

    def make_vectorizer(self) -> CountVectorizer:
        return CountVectorizer(
            rules=self.cleaning_rules(),
            min_count=self.min_count,
            max_features=self.max_features,
        )

    def to_dict(self) -> dict:
        return {
            "stopword_language": self.stopword_language,
            "stopwords_file": self.stopwords_file,
            "min_token_length": self.min_token_length,
            "split_ratios": list(self.split_ratios),
            "strategy": ResampleStrategy(self.strategy).value,
            "target_size": self.target_size,
            "minority_fraction": self.minority_fraction,
            "seed": self.seed,
            "vocabulary_scope": VocabularyScope(self.vocabulary_scope).value,
            "min_count": self.min_count,
            "max_features": self.max_features,
            "alpha": self.alpha,
            "shuffle": self.shuffle,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PipelineConfig":
        config = cls(**{k: v for k, v in data.items() if k != "split_ratios"})
        if "split_ratios" in data:
            config.split_ratios = tuple(data["split_ratios"])
        return config


# ---------------------------------------------------------------------------
# High-level classifier
# ---------------------------------------------------------------------------


@dataclass
class ClassificationResult:
    """Result of classifying a single document."""

    predicted_class: str
    confidence: float
    probabilities: dict[str, float]

    def to_dict(self) -> dict:
        return {
            "predicted_class": self.predicted_class,
            "confidence": round(self.confidence, 4),
            "probabilities": {
                k: round(v, 4)
                for k, v in sorted(
                    self.probabilities.items(),
                    key=lambda x: x[1],
                    reverse=True,
                )
            },
        }


class TextClassifier:
    """Bag-of-words vectorizer and Naive Bayes model behind one interface.

    Example::

        clf = TextClassifier()
        clf.train(texts, labels)
        clf.classify("Thank you so much. (Applause)").predicted_class
        clf.save("model.json")
        loaded = TextClassifier.load("model.json")
    """

    def __init__(
        self,
        vectorizer: Optional[CountVectorizer] = None,
        alpha: float = 1.0,
    ) -> None:
        self.vectorizer = vectorizer or CountVectorizer()
        self.model = NaiveBayesClassifier(alpha=alpha)
        self.metadata: dict = {}

    @property
    def is_trained(self) -> bool:
        return self.model.is_fitted

    @property
    def classes(self) -> list[str]:
        return list(self.model.classes_)

    @property
    def vocabulary(self) -> Optional[Vocabulary]:
        return self.vectorizer.vocabulary_

    def train(self, documents: list[str], labels: list[str]) -> ClassificationMetrics:
        """Fit vocabulary and model on raw documents.

        Returns:
            Metrics on the training documents (a sanity check, not an estimate).
        """
        return self.fit_tokens(self.vectorizer.tokenize(documents), labels)

    def fit_tokens(
        self,
        token_sequences: list[list[str]],
        labels: list[str],
        refit_vocabulary: bool = True,
        metric_labels: Optional[list[str]] = None,
    ) -> ClassificationMetrics:
        """Fit on tokenized documents and return training-set metrics.

        With ``refit_vocabulary=False`` the vectorizer's existing vocabulary
        is kept and the documents are projected onto it. ``metric_labels``
        sets the label axis of the returned metrics (default: trained classes).
        """
        if refit_vocabulary or self.vectorizer.vocabulary_ is None:
            self.vectorizer.fit_tokens(token_sequences)
        vectors = self.vectorizer.transform_tokens(token_sequences)
        self.model.fit(vectors, labels)
        predicted = self.model.predict(vectors)
        return evaluate(labels, predicted, labels=metric_labels or self.classes)

    def predict_tokens(self, token_sequences: list[list[str]]) -> list[str]:
        self._check_trained()
        return self.model.predict(self.vectorizer.transform_tokens(token_sequences))

    def predict(self, texts: list[str]) -> list[str]:
        return self.predict_tokens(self.vectorizer.tokenize(texts))

    def classify(self, text: str) -> ClassificationResult:
        """Classify a single document.

        Raises:
            RuntimeError: If the classifier has not been trained.
        """
        return self.classify_batch([text])[0]

    def classify_batch(self, texts: list[str]) -> list[ClassificationResult]:
        self._check_trained()
        probas = self.model.predict_proba(self.vectorizer.transform(texts))
        results = []
        for proba in probas:
            predicted = max(proba, key=proba.get)  # type: ignore[arg-type]
            results.append(
                ClassificationResult(
                    predicted_class=predicted,
                    confidence=proba[predicted],
                    probabilities=proba,
                )
            )
        return results

    def most_informative_features(
        self,
        class_name: str,
        top_n: int = 20,
    ) -> list[tuple[str, float]]:
        """Terms most indicative of ``class_name``, with log-likelihood ratios."""
        self._check_trained()
        vocab = self.vectorizer.vocabulary_
        return [
            (vocab.term(idx), score)
            for idx, score in self.model.most_informative_features(class_name, top_n)
        ]

    def _check_trained(self) -> None:
        if not self.is_trained or self.vectorizer.vocabulary_ is None:
            raise RuntimeError("Classifier not trained. Call train() first.")

    def to_dict(self) -> dict:
        return {
            "version": MODEL_FORMAT_VERSION,
            "vectorizer": self.vectorizer.to_dict(),
            "classifier": self.model.to_dict(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TextClassifier":
        version = data.get("version")
        if version != MODEL_FORMAT_VERSION:
            raise ValueError(f"Unsupported model format version: {version!r}")
        clf = cls(vectorizer=CountVectorizer.from_dict(data["vectorizer"]))
        clf.model = NaiveBayesClassifier.from_dict(data["classifier"])
        clf.metadata = dict(data.get("metadata", {}))
        vocab = clf.vectorizer.vocabulary_
        if vocab is None or len(vocab) != clf.model.n_features_:
            raise ValueError("Model file vocabulary does not match the classifier's feature count")
        return clf

    def save(self, path: str | Path) -> None:
        """Save the trained model to a JSON file.

        Raises:
            RuntimeError: If the classifier has not been trained.
        """
        self._check_trained()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str | Path) -> "TextClassifier":
        """Load a trained model from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


# ---------------------------------------------------------------------------
# Experiment
# ---------------------------------------------------------------------------


@dataclass
class _Sample:
    document_id: str
    tokens: list[str]
    label: str


@dataclass
class ExperimentResult:
    """Everything one run produced, for display or serialization."""

    config: PipelineConfig
    classifier: TextClassifier
    dev_metrics: ClassificationMetrics
    test_metrics: ClassificationMetrics
    train_metrics: ClassificationMetrics
    corpus_size: int = 0
    skipped_rows: int = 0
    distribution_before: dict = field(default_factory=dict)
    distribution_after: dict = field(default_factory=dict)
    split_sizes: dict[str, int] = field(default_factory=dict)
    split_distributions: dict[str, dict] = field(default_factory=dict)
    vocabulary_size: int = 0

    def to_dict(self) -> dict:
        return {
            "config": self.config.to_dict(),
            "corpus_size": self.corpus_size,
            "skipped_rows": self.skipped_rows,
            "vocabulary_size": self.vocabulary_size,
            "distribution_before": self.distribution_before,
            "distribution_after": self.distribution_after,
            "split_sizes": self.split_sizes,
            "split_distributions": self.split_distributions,
            "train_metrics": self.train_metrics.to_dict(),
            "dev_metrics": self.dev_metrics.to_dict(),
            "test_metrics": self.test_metrics.to_dict(),
        }


def run_experiment(corpus: Corpus, config: Optional[PipelineConfig] = None) -> ExperimentResult:
    """Run the full pipeline on a loaded corpus.

    Steps: tokenize every document, optionally build the vocabulary from
    the whole corpus, resample, shuffle, split by position, fit the
    vocabulary (train scope) and the model on the training split, then
    evaluate on dev and test.

    Raises:
        ConfigurationError: If the configuration or the resampling target
            is invalid. Raised before any training.
        InvalidInputError: If the training split has fewer than two classes.
    """
    config = replace(config or PipelineConfig()).validate()
    rng = random.Random(config.seed)

    vectorizer = config.make_vectorizer()
    tokens = vectorizer.tokenize(corpus.texts)
    samples = [
        _Sample(document_id=doc.id, tokens=toks, label=doc.label)
        for doc, toks in zip(corpus.documents, tokens)
    ]
    labels = sorted(set(corpus.labels))
    if len(labels) < 2:
        raise ConfigurationError(f"Corpus needs at least 2 classes, found {labels}")

    if config.vocabulary_scope is VocabularyScope.CORPUS:
        vectorizer.fit_tokens(tokens)

    before = class_distribution(s.label for s in samples)
    logger.info("Class distribution before resampling: %s", before)
    samples = resample(
        samples,
        config.strategy,
        rng,
        target_size=config.target_size,
        minority_fraction=config.minority_fraction,
    )
    after = class_distribution(s.label for s in samples)

    if config.shuffle:
        samples = shuffled(samples, rng)
    split = split_dataset(samples, config.split_ratios)
    split_distributions = {
        name: class_distribution(s.label for s in part)
        for name, part in (("train", split.train), ("dev", split.dev), ("test", split.test))
    }
    logger.info("Split sizes: %s", split.sizes)
    logger.debug("Split class distributions: %s", split_distributions)

    classifier = TextClassifier(vectorizer=vectorizer, alpha=config.alpha)
    train_metrics = classifier.fit_tokens(
        [s.tokens for s in split.train],
        [s.label for s in split.train],
        refit_vocabulary=config.vocabulary_scope is VocabularyScope.TRAIN,
        metric_labels=labels,
    )
    classifier.metadata = {"config": config.to_dict(), "labels": labels}
    logger.info("Vocabulary size: %d", len(classifier.vocabulary))

    def _score(part: list[_Sample]) -> ClassificationMetrics:
        predicted = classifier.predict_tokens([s.tokens for s in part]) if part else []
        return evaluate([s.label for s in part], predicted, labels=labels)

    return ExperimentResult(
        config=config,
        classifier=classifier,
        train_metrics=train_metrics,
        dev_metrics=_score(split.dev),
        test_metrics=_score(split.test),
        corpus_size=len(corpus),
        skipped_rows=corpus.skipped,
        distribution_before=before,
        distribution_after=after,
        split_sizes=split.sizes,
        split_distributions=split_distributions,
        vocabulary_size=len(classifier.vocabulary),
    )


def compare_strategies(
    corpus: Corpus,
    config: Optional[PipelineConfig] = None,
    strategies: Iterable[ResampleStrategy | str] = tuple(ResampleStrategy),
) -> dict[str, ExperimentResult]:
    """Run the experiment once per resampling strategy with the same seed.

    The baseline (``none``) run ignores the config's resampling target.
    """
    base = config or PipelineConfig()
    results: dict[str, ExperimentResult] = {}
    for strategy in strategies:
        strategy = ResampleStrategy(strategy)
        if strategy is ResampleStrategy.NONE:
            run_config = replace(base, strategy=strategy, target_size=None, minority_fraction=None)
        else:
            run_config = replace(base, strategy=strategy)
        results[strategy.value] = run_experiment(corpus, run_config)
    return results
