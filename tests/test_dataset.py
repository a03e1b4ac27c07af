"""Tests for loading labeled transcripts from CSV files."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import pytest

from talk_gender_classifier.dataset import corpus_from_frame, load_corpus

CSV_WITH_GAPS = (
    "transcript,gender,talk_id\n"
    '"Thanks, everyone.",male,t1\n'
    '"I studied gardens",Female ,t2\n'
    ",female,t3\n"
    '"No label here",,t4\n'
    '"   ",male,t5\n'
)


@pytest.fixture
def csv_with_gaps(tmp_path: Path) -> Path:
    path = tmp_path / "talks.csv"
    path.write_text(CSV_WITH_GAPS, encoding="utf-8")
    return path


class TestLoadCorpus:
    def test_skips_rows_without_text_or_label(self, csv_with_gaps: Path) -> None:
        corpus = load_corpus(csv_with_gaps, id_column="talk_id")
        assert len(corpus) == 2
        assert corpus.skipped == 3
        assert [d.id for d in corpus.documents] == ["t1", "t2"]

    def test_labels_normalised(self, csv_with_gaps: Path) -> None:
        corpus = load_corpus(csv_with_gaps)
        assert corpus.labels == ["male", "female"]

    def test_skipped_rows_logged(self, csv_with_gaps: Path, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            load_corpus(csv_with_gaps)
        assert "Skipped 3 of 5 rows" in caplog.text

    def test_default_ids_are_row_numbers(self, csv_with_gaps: Path) -> None:
        corpus = load_corpus(csv_with_gaps)
        assert [d.id for d in corpus.documents] == ["0", "1"]

    def test_custom_columns(self, tmp_path: Path) -> None:
        path = tmp_path / "talks.csv"
        path.write_text("body,speaker_gender\nhello there,male\n", encoding="utf-8")
        corpus = load_corpus(path, text_column="body", label_column="speaker_gender")
        assert corpus.texts == ["hello there"]

    def test_tsv(self, tmp_path: Path) -> None:
        path = tmp_path / "talks.tsv"
        path.write_text("transcript\tgender\nhi, all\tfemale\n", encoding="utf-8")
        corpus = load_corpus(path)
        assert corpus.texts == ["hi, all"]
        assert corpus.source == str(path)

    def test_missing_column(self, csv_with_gaps: Path) -> None:
        with pytest.raises(KeyError, match="speaker"):
            load_corpus(csv_with_gaps, label_column="speaker")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_corpus(tmp_path / "nope.csv")

    def test_fixture_csv(self, talks_csv: Path) -> None:
        corpus = load_corpus(talks_csv, id_column="talk_id")
        assert len(corpus) == 60
        assert corpus.skipped == 0


class TestCorpusFromFrame:
    def test_none_values(self) -> None:
        frame = pd.DataFrame({"transcript": ["a talk", None], "gender": ["male", "female"]})
        corpus = corpus_from_frame(frame)
        assert len(corpus) == 1
        assert corpus.to_dict() == {"source": None, "documents": 1, "skipped": 1}
