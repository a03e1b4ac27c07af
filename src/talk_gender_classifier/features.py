"""Vocabulary and document-feature matrix construction.

A ``Vocabulary`` is built once from a reference set of token sequences and
never grows afterwards. Documents are projected onto it as raw term counts
(``FeatureVector``); tokens the vocabulary does not know are dropped.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import FeatureVector
from .preprocessing import CleaningRules, TextCleaner

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------


class Vocabulary:
    """Ordered, de-duplicated terms with stable integer indices.

    Terms are stored in alphabetical order, so the same token multiset
    always yields the same indices regardless of document order.
    """

    def __init__(self, terms: Iterable[str] = ()) -> None:
        ordered = sorted(set(terms))
        self._terms: tuple[str, ...] = tuple(ordered)
        self._index: dict[str, int] = {term: i for i, term in enumerate(ordered)}

    @classmethod
    def build(
        cls,
        token_sequences: Iterable[list[str]],
        min_count: int = 1,
        max_size: Optional[int] = None,
    ) -> "Vocabulary":
        """Build a vocabulary from tokenized documents.

        Args:
            token_sequences: Tokens of each reference document.
            min_count: Drop terms seen fewer times than this in total.
            max_size: Keep only the most frequent terms (ties broken
                alphabetically).

        Returns:
            A new, read-only Vocabulary.
        """
        if min_count < 1:
            raise ValueError(f"min_count must be >= 1, got {min_count}")
        if max_size is not None and max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        counts: Counter[str] = Counter()
        for tokens in token_sequences:
            counts.update(tokens)

        kept = [(term, n) for term, n in counts.items() if n >= min_count]
        if max_size is not None and len(kept) > max_size:
            kept.sort(key=lambda x: (-x[1], x[0]))
            kept = kept[:max_size]

        vocab = cls(term for term, _ in kept)
        logger.debug(
            "Built vocabulary of %d terms from %d distinct tokens",
            len(vocab),
            len(counts),
        )
        return vocab

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, term: object) -> bool:
        return term in self._index

    def __iter__(self):
        return iter(self._terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vocabulary):
            return NotImplemented
        return self._terms == other._terms

    def __repr__(self) -> str:
        return f"Vocabulary(size={len(self)})"

    @property
    def terms(self) -> tuple[str, ...]:
        return self._terms

    def index(self, term: str) -> Optional[int]:
        """Index of ``term``, or None if it is not in the vocabulary."""
        return self._index.get(term)

    def term(self, index: int) -> str:
        return self._terms[index]

    def to_list(self) -> list[str]:
        return list(self._terms)

    @classmethod
    def from_list(cls, terms: list[str]) -> "Vocabulary":
        return cls(terms)


# ---------------------------------------------------------------------------
# Document-feature matrix
# ---------------------------------------------------------------------------


def build_vector(tokens: Iterable[str], vocabulary: Vocabulary) -> FeatureVector:
    """Project tokens onto ``vocabulary`` as raw term counts.

    Tokens absent from the vocabulary are ignored; an empty or fully
    out-of-vocabulary document gives an all-zero vector.
    """
    counts: dict[int, int] = {}
    for token in tokens:
        idx = vocabulary.index(token)
        if idx is None:
            continue
        counts[idx] = counts.get(idx, 0) + 1
    return FeatureVector(size=len(vocabulary), counts=counts)


def build_matrix(
    token_sequences: Iterable[list[str]],
    vocabulary: Vocabulary,
) -> list[FeatureVector]:
    """Build the document-feature matrix as one sparse row per document."""
    return [build_vector(tokens, vocabulary) for tokens in token_sequences]


@dataclass
class CountVectorizer:
    """Bag-of-words vectorizer: cleaning rules plus a fitted vocabulary.

    Args:
        rules: Text cleaning configuration.
        min_count: Minimum total count for a term to enter the vocabulary.
        max_features: Maximum vocabulary size (most frequent terms kept).
    """

    rules: CleaningRules = field(default_factory=CleaningRules)
    min_count: int = 1
    max_features: Optional[int] = None

    # Learned state
    vocabulary_: Optional[Vocabulary] = field(default=None, repr=False)

    @property
    def cleaner(self) -> TextCleaner:
        return TextCleaner(self.rules)

    def tokenize(self, documents: list[str]) -> list[list[str]]:
        return self.cleaner.tokenize_all(documents)

    def fit(self, documents: list[str]) -> "CountVectorizer":
        """Learn the vocabulary from raw documents."""
        return self.fit_tokens(self.tokenize(documents))

    def fit_tokens(self, token_sequences: list[list[str]]) -> "CountVectorizer":
        """Learn the vocabulary from already tokenized documents."""
        self.vocabulary_ = Vocabulary.build(
            token_sequences,
            min_count=self.min_count,
            max_size=self.max_features,
        )
        return self

    def transform(self, documents: list[str]) -> list[FeatureVector]:
        """Project raw documents onto the fitted vocabulary.

        Raises:
            RuntimeError: If the vectorizer has not been fitted.
        """
        return self.transform_tokens(self.tokenize(documents))

    def transform_tokens(self, token_sequences: list[list[str]]) -> list[FeatureVector]:
        if self.vocabulary_ is None:
            raise RuntimeError("Vectorizer has not been fitted. Call fit() first.")
        return build_matrix(token_sequences, self.vocabulary_)

    def fit_transform(self, documents: list[str]) -> list[FeatureVector]:
        """Fit and transform in one step."""
        tokens = self.tokenize(documents)
        self.fit_tokens(tokens)
        return self.transform_tokens(tokens)

    def to_dict(self) -> dict:
        """Serialize vectorizer state to a dictionary."""
        return {
            "rules": self.rules.to_dict(),
            "min_count": self.min_count,
            "max_features": self.max_features,
            "vocabulary": self.vocabulary_.to_list() if self.vocabulary_ else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CountVectorizer":
        """Deserialize vectorizer from a dictionary."""
        vec = cls(
            rules=CleaningRules.from_dict(data["rules"]),
            min_count=data.get("min_count", 1),
            max_features=data.get("max_features"),
        )
        if data.get("vocabulary") is not None:
            vec.vocabulary_ = Vocabulary.from_list(data["vocabulary"])
        return vec
