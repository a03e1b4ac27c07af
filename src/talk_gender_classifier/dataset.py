"""Loading labeled transcripts from tabular files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from .models import Corpus, Document

logger = logging.getLogger(__name__)

DEFAULT_TEXT_COLUMN = "transcript"
DEFAULT_LABEL_COLUMN = "gender"


def corpus_from_frame(
    frame: pd.DataFrame,
    text_column: str = DEFAULT_TEXT_COLUMN,
    label_column: str = DEFAULT_LABEL_COLUMN,
    id_column: Optional[str] = None,
    source: Optional[str] = None,
) -> Corpus:
    """Build a Corpus from a DataFrame, skipping rows without text or label.

    Labels are stripped and lower-cased so ``"Female "`` and ``"female"``
    are the same class. Document ids come from ``id_column`` when given,
    otherwise from the frame's index.

    Raises:
        KeyError: If a named column is missing.
    """
    required = [text_column, label_column] + ([id_column] if id_column else [])
    missing = [c for c in required if c not in frame.columns]
    if missing:
        raise KeyError(f"Missing column(s) {missing}; available: {list(frame.columns)}")

    texts = frame[text_column]
    labels = frame[label_column]
    ids = frame[id_column] if id_column else pd.Series(frame.index, index=frame.index)

    documents: list[Document] = []
    skipped = 0
    for doc_id, text, label in zip(ids, texts, labels):
        if pd.isna(text) or pd.isna(label):
            skipped += 1
            continue
        text = str(text)
        label = str(label).strip().lower()
        if not text.strip() or not label:
            skipped += 1
            continue
        documents.append(Document(id=str(doc_id), text=text, label=label))

    if skipped:
        logger.warning(
            "Skipped %d of %d rows with missing text or label%s",
            skipped,
            len(frame),
            f" in {source}" if source else "",
        )
    logger.info("Loaded %d documents%s", len(documents), f" from {source}" if source else "")
    return Corpus(documents=documents, skipped=skipped, source=source)


def load_corpus(
    path: str | Path,
    text_column: str = DEFAULT_TEXT_COLUMN,
    label_column: str = DEFAULT_LABEL_COLUMN,
    id_column: Optional[str] = None,
) -> Corpus:
    """Read a CSV (or TSV, by extension) file of labeled transcripts.

    Raises:
        FileNotFoundError: If the file does not exist.
        KeyError: If a named column is missing.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    sep = "\t" if path.suffix.lower() in (".tsv", ".tab") else ","
    frame = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=True)
    return corpus_from_frame(
        frame,
        text_column=text_column,
        label_column=label_column,
        id_column=id_column,
        source=str(path),
    )
