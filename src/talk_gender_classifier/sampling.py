"""Seeded shuffling, positional train/dev/test splitting and resampling.

All functions take an explicit ``random.Random`` instance; nothing here
touches the module-level ``random`` state.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, Optional, Sequence, TypeVar

from .models import ConfigurationError, ResampleStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SPLIT_RATIOS: tuple[float, float, float] = (0.6, 0.2, 0.2)

_RATIO_TOLERANCE = 1e-9


def _label_of(item) -> str:
    return item.label


# ---------------------------------------------------------------------------
# Class balance
# ---------------------------------------------------------------------------


def class_distribution(labels: Iterable[str]) -> dict[str, dict[str, float]]:
    """Count and fraction of each label, keyed in sorted label order."""
    counts = Counter(labels)
    total = sum(counts.values())
    return {
        label: {
            "count": counts[label],
            "fraction": counts[label] / total if total else 0.0,
        }
        for label in sorted(counts)
    }


def minority_label(labels: Iterable[str]) -> str:
    """Least frequent label; ties go to the label that sorts first.

    Raises:
        ConfigurationError: If there are not exactly two classes.
    """
    counts = Counter(labels)
    if len(counts) != 2:
        raise ConfigurationError(
            f"Resampling needs exactly 2 classes, found {len(counts)}: {sorted(counts)}"
        )
    return min(sorted(counts), key=lambda label: counts[label])


# ---------------------------------------------------------------------------
# Shuffling and splitting
# ---------------------------------------------------------------------------


def shuffled(items: Iterable[T], rng: random.Random) -> list[T]:
    """Return a shuffled copy of ``items``; the input is left untouched."""
    result = list(items)
    rng.shuffle(result)
    return result


@dataclass
class DatasetSplit(Generic[T]):
    """Contiguous train/dev/test partitions of one ordered dataset."""

    train: list[T] = field(default_factory=list)
    dev: list[T] = field(default_factory=list)
    test: list[T] = field(default_factory=list)

    @property
    def sizes(self) -> dict[str, int]:
        return {"train": len(self.train), "dev": len(self.dev), "test": len(self.test)}

    def __len__(self) -> int:
        return len(self.train) + len(self.dev) + len(self.test)


def validate_split_ratios(ratios: Sequence[float]) -> tuple[float, float, float]:
    """Check a (train, dev, test) ratio triple.

    Raises:
        ConfigurationError: If there are not three ratios, any is negative,
            train is zero, or they do not sum to 1.
    """
    if len(ratios) != 3:
        raise ConfigurationError(
            f"Expected 3 split ratios (train, dev, test), got {len(ratios)}"
        )
    train, dev, test = (float(r) for r in ratios)
    if min(train, dev, test) < 0:
        raise ConfigurationError(f"Split ratios must be non-negative, got {tuple(ratios)}")
    if train <= 0:
        raise ConfigurationError("Train split ratio must be greater than 0")
    if abs(train + dev + test - 1.0) > _RATIO_TOLERANCE:
        raise ConfigurationError(
            f"Split ratios must sum to 1, got {train + dev + test:.6f} for {tuple(ratios)}"
        )
    return train, dev, test


def split_dataset(
    items: Sequence[T],
    ratios: Sequence[float] = DEFAULT_SPLIT_RATIOS,
) -> DatasetSplit[T]:
    """Partition ``items`` by position into train, dev and test.

    Train takes the first ``floor(n * train_ratio)`` items, dev the next
    ``floor(n * dev_ratio)`` and test the remainder, so the three parts are
    disjoint and together cover the input. Class balance of each part
    depends on the order of ``items``; check it with
    :func:`class_distribution`.
    """
    train_ratio, dev_ratio, _ = validate_split_ratios(ratios)
    n = len(items)
    n_train = int(n * train_ratio + _RATIO_TOLERANCE)
    n_dev = int(n * dev_ratio + _RATIO_TOLERANCE)

    return DatasetSplit(
        train=list(items[:n_train]),
        dev=list(items[n_train : n_train + n_dev]),
        test=list(items[n_train + n_dev :]),
    )


# ---------------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------------


def _check_target_fraction(
    strategy: ResampleStrategy, new_min: int, target_size: int, minority_fraction: float
) -> None:
    """Raise if a target size pins the minority share away from the requested one."""
    achieved = new_min / target_size
    if abs(achieved - minority_fraction) > 1.0 / target_size:
        raise ConfigurationError(
            f"{strategy.value!r} resampling to {target_size} items gives a minority "
            f"fraction of {achieved:.4f}, not the requested {minority_fraction}; "
            f"drop one of target_size and minority_fraction or use 'both'"
        )


def resample(
    items: Iterable[T],
    strategy: ResampleStrategy | str,
    rng: random.Random,
    target_size: Optional[int] = None,
    minority_fraction: Optional[float] = None,
    key: Callable[[T], str] = _label_of,
) -> list[T]:
    """Rebalance a two-class dataset.

    Strategies:

    - ``none``: a copy of the input.
    - ``over``: all minority items kept, extra minority items drawn with
      replacement. The minority grows to the majority size by default, to
      ``target_size - majority`` when a target size is given, or to the
      count that gives ``minority_fraction``. Majority untouched.
    - ``under``: majority items drawn without replacement down to the
      minority size by default, to ``target_size - minority``, or to the
      count that gives ``minority_fraction``. Minority untouched.

    ``over`` and ``under`` keep one class fixed, so a target size alone
    decides the minority share. When both parameters are given that share
    must lie within ``1 / target_size`` of ``minority_fraction``.
    - ``both``: ``target_size`` items in total (default: input size),
      ``round(target_size * p)`` minority items drawn with replacement and
      the rest drawn from the majority without replacement; ``p`` defaults
      to 0.5.

    The result is not shuffled: majority items come first.

    Args:
        items: Labeled items (anything ``key`` can read a label from).
        strategy: Resampling strategy.
        rng: Random source for all draws.
        target_size: Requested total size.
        minority_fraction: Requested share of the minority class, in (0, 1).
        key: Returns the label of an item.

    Returns:
        The resampled list.

    Raises:
        ConfigurationError: If the data is not two-class, or the target
            cannot be reached with the strategy's draw rules.
    """
    strategy = ResampleStrategy(strategy)
    items = list(items)
    if strategy is ResampleStrategy.NONE:
        return items

    if minority_fraction is not None and not 0.0 < minority_fraction < 1.0:
        raise ConfigurationError(
            f"minority_fraction must be strictly between 0 and 1, got {minority_fraction}"
        )
    if target_size is not None and target_size < 2:
        raise ConfigurationError(f"target_size must be at least 2, got {target_size}")

    small = minority_label(key(item) for item in items)
    minority = [item for item in items if key(item) == small]
    majority = [item for item in items if key(item) != small]
    n_min, n_maj = len(minority), len(majority)

    if strategy is ResampleStrategy.OVER:
        if target_size is not None:
            new_min = target_size - n_maj
        elif minority_fraction is not None:
            new_min = round(minority_fraction * n_maj / (1 - minority_fraction))
        else:
            new_min = n_maj
        if new_min < n_min:
            raise ConfigurationError(
                f"Over-sampling cannot shrink the minority class '{small}' "
                f"from {n_min} to {new_min} items"
            )
        if target_size is not None and minority_fraction is not None:
            _check_target_fraction(strategy, new_min, target_size, minority_fraction)
        result = majority + minority + rng.choices(minority, k=new_min - n_min)

    elif strategy is ResampleStrategy.UNDER:
        if target_size is not None:
            new_maj = target_size - n_min
        elif minority_fraction is not None:
            new_maj = round(n_min * (1 - minority_fraction) / minority_fraction)
        else:
            new_maj = n_min
        if not 1 <= new_maj <= n_maj:
            raise ConfigurationError(
                f"Under-sampling needs between 1 and {n_maj} majority items, "
                f"target requires {new_maj}"
            )
        if target_size is not None and minority_fraction is not None:
            _check_target_fraction(strategy, n_min, target_size, minority_fraction)
        result = rng.sample(majority, new_maj) + minority

    else:
        total = target_size if target_size is not None else len(items)
        p = minority_fraction if minority_fraction is not None else 0.5
        new_min = round(total * p)
        new_maj = total - new_min
        if new_min < 1 or new_maj < 1:
            raise ConfigurationError(
                f"Target size {total} with minority fraction {p} leaves a class empty"
            )
        if new_maj > n_maj:
            raise ConfigurationError(
                f"Combined resampling draws the majority without replacement: "
                f"needs {new_maj} items but only {n_maj} exist"
            )
        result = rng.sample(majority, new_maj) + rng.choices(minority, k=new_min)

    logger.info(
        "Resampled (%s): %d -> %d items, minority '%s' %d -> %d",
        strategy.value,
        len(items),
        len(result),
        small,
        n_min,
        sum(1 for item in result if key(item) == small),
    )
    return result
