"""Data models and exceptions for the talk classification pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class InvalidInputError(ValueError):
    """Training or prediction input that cannot be used as given."""


class ConfigurationError(ValueError):
    """Pipeline options that are inconsistent with each other or the data."""


class VocabularyMismatchError(ValueError):
    """A feature vector was projected through a different vocabulary."""


class ResampleStrategy(str, Enum):
    """Class-imbalance correction applied before splitting."""

    NONE = "none"
    OVER = "over"
    UNDER = "under"
    BOTH = "both"


class VocabularyScope(str, Enum):
    """Which documents the vocabulary is built from."""

    TRAIN = "train"
    CORPUS = "corpus"


@dataclass(frozen=True)
class Document:
    """A single labeled transcript."""

    id: str
    text: str
    label: str


@dataclass
class FeatureVector:
    """Sparse term counts over a vocabulary of ``size`` terms."""

    size: int
    counts: dict[int, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def is_empty(self) -> bool:
        return not self.counts

    def to_dense(self) -> list[int]:
        dense = [0] * self.size
        for idx, count in self.counts.items():
            dense[idx] = count
        return dense


@dataclass
class LabeledExample:
    """A feature vector paired with its class label."""

    vector: FeatureVector
    label: str
    document_id: Optional[str] = None


@dataclass
class Corpus:
    """Documents accepted at load time, plus the number of rows skipped."""

    documents: list[Document] = field(default_factory=list)
    skipped: int = 0
    source: Optional[str] = None

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def texts(self) -> list[str]:
        return [d.text for d in self.documents]

    @property
    def labels(self) -> list[str]:
        return [d.label for d in self.documents]

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "documents": len(self.documents),
            "skipped": self.skipped,
        }
