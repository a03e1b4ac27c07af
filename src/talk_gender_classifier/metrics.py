"""Confusion matrix and derived classification metrics.

For a confusion matrix ``M[actual][predicted]`` and each class ``c``:

- precision(c) = M[c][c] / sum over a of M[a][c]   (0 when the column is empty)
- recall(c)    = M[c][c] / sum over p of M[c][p]   (0 when the row is empty)
- f1(c)        = 2 * precision * recall / (precision + recall)   (0 when both are 0)
- accuracy     = trace(M) / total                  (0 for no samples)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

import pandas as pd


@dataclass
class ClassificationMetrics:
    """Evaluation report for one set of predictions.

    Attributes:
        labels: Class order used for the confusion matrix rows and columns.
        confusion_matrix: ``{actual: {predicted: count}}``.
        accuracy: Overall accuracy.
        per_class: Per-class precision, recall, F1.
        support: Number of actual samples per class.
        macro_precision: Unweighted mean precision across classes.
        macro_recall: Unweighted mean recall across classes.
        macro_f1: Unweighted mean F1 across classes.
        weighted_f1: Support-weighted mean F1 across classes.
    """

    labels: list[str] = field(default_factory=list)
    confusion_matrix: dict[str, dict[str, int]] = field(default_factory=dict)
    accuracy: float = 0.0
    per_class: dict[str, dict[str, float]] = field(default_factory=dict)
    support: dict[str, int] = field(default_factory=dict)
    macro_precision: float = 0.0
    macro_recall: float = 0.0
    macro_f1: float = 0.0
    weighted_f1: float = 0.0

    @property
    def total(self) -> int:
        return sum(sum(row.values()) for row in self.confusion_matrix.values())

    @property
    def correct(self) -> int:
        """Diagonal sum of the confusion matrix."""
        return sum(self.confusion_matrix[c][c] for c in self.labels)

    def recall(self, label: str) -> float:
        return self.per_class[label]["recall"]

    def precision(self, label: str) -> float:
        return self.per_class[label]["precision"]

    def f1(self, label: str) -> float:
        return self.per_class[label]["f1"]

    def to_dict(self) -> dict:
        return {
            "labels": self.labels,
            "accuracy": round(self.accuracy, 4),
            "macro_precision": round(self.macro_precision, 4),
            "macro_recall": round(self.macro_recall, 4),
            "macro_f1": round(self.macro_f1, 4),
            "weighted_f1": round(self.weighted_f1, 4),
            "per_class": {
                cls: {k: round(v, 4) for k, v in metrics.items()}
                for cls, metrics in self.per_class.items()
            },
            "support": self.support,
            "confusion_matrix": self.confusion_matrix,
        }

    def to_frame(self) -> pd.DataFrame:
        """Per-class metrics as a table, one row per class."""
        rows = [
            {
                "class": cls,
                "precision": self.per_class[cls]["precision"],
                "recall": self.per_class[cls]["recall"],
                "f1": self.per_class[cls]["f1"],
                "support": self.support.get(cls, 0),
            }
            for cls in self.labels
        ]
        return pd.DataFrame(rows, columns=["class", "precision", "recall", "f1", "support"])

    def confusion_frame(self) -> pd.DataFrame:
        """Confusion matrix with actual classes as rows, predicted as columns."""
        frame = pd.DataFrame(
            [[self.confusion_matrix[a][p] for p in self.labels] for a in self.labels],
            index=pd.Index(self.labels, name="actual"),
            columns=pd.Index(self.labels, name="predicted"),
        )
        return frame

    def summary(self) -> str:
        """Human-readable summary of metrics."""
        lines = [
            f"Accuracy: {self.accuracy:.2%} ({self.correct}/{self.total})",
            f"Macro F1: {self.macro_f1:.4f}",
            f"Weighted F1: {self.weighted_f1:.4f}",
            "",
            f"{'Class':<20} {'Precision':>10} {'Recall':>10} {'F1':>10} {'Support':>10}",
            "-" * 62,
        ]
        for cls in self.labels:
            m = self.per_class[cls]
            s = self.support.get(cls, 0)
            lines.append(
                f"{cls:<20} {m['precision']:>10.4f} {m['recall']:>10.4f} "
                f"{m['f1']:>10.4f} {s:>10}"
            )
        return "\n".join(lines)


def evaluate(
    actual: Sequence[str],
    predicted: Sequence[str],
    labels: Optional[Sequence[str]] = None,
) -> ClassificationMetrics:
    """Compute confusion matrix and metrics from actual and predicted labels.

    Args:
        actual: Ground truth labels.
        predicted: Predicted labels.
        labels: Class order for the report. Defaults to the sorted union of
            both label lists; labels outside this list raise ValueError.

    Returns:
        ClassificationMetrics with accuracy, per-class, and aggregate scores.
    """
    if len(actual) != len(predicted):
        raise ValueError(
            f"actual ({len(actual)}) and predicted ({len(predicted)}) must have the same length"
        )

    if labels is None:
        classes = sorted(set(actual) | set(predicted))
    else:
        classes = list(dict.fromkeys(labels))
        unknown = (set(actual) | set(predicted)) - set(classes)
        if unknown:
            raise ValueError(f"Labels {sorted(unknown)} are not in {classes}")

    cm: dict[str, dict[str, int]] = {a: {p: 0 for p in classes} for a in classes}
    for a, p in zip(actual, predicted):
        cm[a][p] += 1

    n = len(actual)
    trace = sum(cm[c][c] for c in classes)
    accuracy = trace / n if n > 0 else 0.0

    per_class: dict[str, dict[str, float]] = {}
    support: dict[str, int] = {}
    for cls in classes:
        tp = cm[cls][cls]
        predicted_total = sum(cm[other][cls] for other in classes)
        actual_total = sum(cm[cls].values())
        support[cls] = actual_total

        precision = tp / predicted_total if predicted_total > 0 else 0.0
        recall = tp / actual_total if actual_total > 0 else 0.0
        f1 = (
            2 * precision * recall / (precision + recall)
            if (precision + recall) > 0
            else 0.0
        )
        per_class[cls] = {"precision": precision, "recall": recall, "f1": f1}

    k = len(classes)
    macro_p = sum(m["precision"] for m in per_class.values()) / k if k else 0.0
    macro_r = sum(m["recall"] for m in per_class.values()) / k if k else 0.0
    macro_f1 = sum(m["f1"] for m in per_class.values()) / k if k else 0.0
    weighted_f1 = (
        sum(per_class[cls]["f1"] * support[cls] for cls in classes) / n if n > 0 else 0.0
    )

    return ClassificationMetrics(
        labels=classes,
        confusion_matrix=cm,
        accuracy=accuracy,
        per_class=per_class,
        support=support,
        macro_precision=macro_p,
        macro_recall=macro_r,
        macro_f1=macro_f1,
        weighted_f1=weighted_f1,
    )
