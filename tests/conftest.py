"""Shared test fixtures for talk-gender-classifier tests."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from talk_gender_classifier.models import Corpus, Document

MALE_WORDS = ["engine", "football", "rocket", "soldier", "beard", "garage"]
FEMALE_WORDS = ["garden", "mother", "dance", "poetry", "sister", "nurse"]
SHARED_WORDS = ["people", "world", "story", "today", "think", "idea"]


def _talk(words: list[str], i: int) -> str:
    return (
        f"So {words[i % 6]} and {words[(i + 1) % 6]}, "
        f"{SHARED_WORDS[i % 6]} {SHARED_WORDS[(i + 2) % 6]}. (Applause)"
    )


@pytest.fixture
def gender_corpus() -> Corpus:
    """60 synthetic talks, 40 male and 20 female, with class-specific words."""
    documents = [
        Document(id=f"m{i}", text=_talk(MALE_WORDS, i), label="male") for i in range(40)
    ] + [
        Document(id=f"f{i}", text=_talk(FEMALE_WORDS, i), label="female") for i in range(20)
    ]
    return Corpus(documents=documents, source="synthetic")


@pytest.fixture
def imbalanced_corpus() -> Corpus:
    """10 documents labeled 8 x A and 2 x B; 'zeta' and 'omega' only occur in B."""
    texts = ["common common common"] * 8 + ["common zeta omega"] * 2
    labels = ["A"] * 8 + ["B"] * 2
    return Corpus(
        documents=[
            Document(id=str(i), text=text, label=label)
            for i, (text, label) in enumerate(zip(texts, labels))
        ]
    )


@pytest.fixture
def talks_csv(tmp_path: Path, gender_corpus: Corpus) -> Path:
    """The synthetic corpus written as a CSV file."""
    path = tmp_path / "talks.csv"
    pd.DataFrame(
        {
            "talk_id": [d.id for d in gender_corpus.documents],
            "transcript": [d.text for d in gender_corpus.documents],
            "gender": [d.label for d in gender_corpus.documents],
        }
    ).to_csv(path, index=False)
    return path
