"""Transcript cleaning and tokenization.

Every cleaning step is an explicit, documented rule on ``CleaningRules``
rather than an implicit library default. Rules are applied in this order:

1. Unicode normalization (NFC) and typographic quote folding
2. Stage annotations such as ``(Laughter)`` or ``(Applause)`` removed
3. Lower-casing
4. URLs removed (``http://``, ``https://`` and ``www.`` prefixes)
5. Numbers removed (digit runs, including ``3.5`` and ``1,000``)
6. Punctuation (Unicode category ``P*``) turned into separators
7. Symbols (Unicode category ``S*``) turned into separators
8. Whitespace split into tokens
9. Tokens shorter than ``min_token_length`` dropped
10. Stopwords dropped

A document that is empty after cleaning yields an empty token list.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

# ---------------------------------------------------------------------------
# Stopword lists
# ---------------------------------------------------------------------------

ENGLISH_STOP_WORDS: frozenset[str] = frozenset(
    {
        "a",
        "about",
        "above",
        "after",
        "again",
        "against",
        "all",
        "also",
        "am",
        "an",
        "and",
        "any",
        "are",
        "as",
        "at",
        "be",
        "because",
        "been",
        "before",
        "being",
        "below",
        "between",
        "both",
        "but",
        "by",
        "can",
        "could",
        "did",
        "do",
        "does",
        "doing",
        "don",
        "down",
        "during",
        "each",
        "few",
        "for",
        "from",
        "further",
        "had",
        "has",
        "have",
        "having",
        "he",
        "her",
        "here",
        "hers",
        "herself",
        "him",
        "himself",
        "his",
        "how",
        "i",
        "if",
        "in",
        "into",
        "is",
        "it",
        "its",
        "itself",
        "just",
        "ll",
        "me",
        "might",
        "more",
        "most",
        "must",
        "my",
        "myself",
        "no",
        "nor",
        "not",
        "now",
        "of",
        "off",
        "on",
        "once",
        "only",
        "or",
        "other",
        "our",
        "ours",
        "ourselves",
        "out",
        "over",
        "own",
        "re",
        "same",
        "shall",
        "she",
        "should",
        "so",
        "some",
        "such",
        "than",
        "that",
        "the",
        "their",
        "theirs",
        "them",
        "themselves",
        "then",
        "there",
        "these",
        "they",
        "this",
        "those",
        "through",
        "to",
        "too",
        "under",
        "until",
        "up",
        "ve",
        "very",
        "was",
        "we",
        "were",
        "what",
        "when",
        "where",
        "which",
        "while",
        "who",
        "whom",
        "why",
        "will",
        "with",
        "would",
        "you",
        "your",
        "yours",
        "yourself",
        "yourselves",
    }
)

STOPWORD_LANGUAGES: dict[str, frozenset[str]] = {
    "english": ENGLISH_STOP_WORDS,
    "none": frozenset(),
}

# Stage directions in talk transcripts, e.g. "(Laughter)" or "(Applause)"
_ANNOTATION_RE = re.compile(r"\([^()]*\)")
_URL_RE = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)*")

_QUOTE_FOLDING = {
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
    "–": "-",
    "—": "-",
    "\xa0": " ",
}


def get_stopwords(language: str) -> frozenset[str]:
    """Return the built-in stopword list for ``language``.

    Raises:
        ValueError: If no list exists for the language.
    """
    key = language.strip().lower()
    if key not in STOPWORD_LANGUAGES:
        raise ValueError(
            f"No stopword list for language '{language}'. "
            f"Available: {sorted(STOPWORD_LANGUAGES)}"
        )
    return STOPWORD_LANGUAGES[key]


def load_stopwords(path: str | Path) -> frozenset[str]:
    """Load a newline-separated stopword file (``#`` starts a comment)."""
    words = set()
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        word = line.split("#", 1)[0].strip().lower()
        if word:
            words.add(word)
    return frozenset(words)


# ---------------------------------------------------------------------------
# Cleaning rules
# ---------------------------------------------------------------------------


@dataclass
class CleaningRules:
    """Explicit configuration of every text cleaning step.

    Attributes:
        lowercase: Fold text to lower case.
        remove_annotations: Drop parenthesised stage directions.
        remove_urls: Drop URLs.
        remove_numbers: Drop digit runs.
        remove_punctuation: Treat punctuation characters as separators.
        remove_symbols: Treat symbol characters (currency, math, emoji) as
            separators.
        min_token_length: Drop tokens shorter than this many characters.
        stopwords: Tokens to drop after all other rules.
    """

    lowercase: bool = True
    remove_annotations: bool = True
    remove_urls: bool = True
    remove_numbers: bool = True
    remove_punctuation: bool = True
    remove_symbols: bool = True
    min_token_length: int = 2
    stopwords: frozenset[str] = field(default=ENGLISH_STOP_WORDS, repr=False)

    def to_dict(self) -> dict:
        return {
            "lowercase": self.lowercase,
            "remove_annotations": self.remove_annotations,
            "remove_urls": self.remove_urls,
            "remove_numbers": self.remove_numbers,
            "remove_punctuation": self.remove_punctuation,
            "remove_symbols": self.remove_symbols,
            "min_token_length": self.min_token_length,
            "stopwords": sorted(self.stopwords),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CleaningRules":
        return cls(
            lowercase=data.get("lowercase", True),
            remove_annotations=data.get("remove_annotations", True),
            remove_urls=data.get("remove_urls", True),
            remove_numbers=data.get("remove_numbers", True),
            remove_punctuation=data.get("remove_punctuation", True),
            remove_symbols=data.get("remove_symbols", True),
            min_token_length=data.get("min_token_length", 2),
            stopwords=frozenset(data.get("stopwords", ENGLISH_STOP_WORDS)),
        )


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


class TextCleaner:
    """Turn raw transcript text into a list of tokens.

    Example::

        cleaner = TextCleaner()
        cleaner.tokenize("So I said: 'Visit www.ted.com in 2024!' (Laughter)")
        # ['said', 'visit']
    """

    def __init__(self, rules: CleaningRules | None = None) -> None:
        self.rules = rules or CleaningRules()

    def clean(self, text: str) -> str:
        """Apply the character-level rules and return normalized text."""
        if not text:
            return ""
        rules = self.rules

        text = unicodedata.normalize("NFC", text)
        for char, replacement in _QUOTE_FOLDING.items():
            text = text.replace(char, replacement)

        if rules.remove_annotations:
            text = _ANNOTATION_RE.sub(" ", text)
        if rules.lowercase:
            text = text.lower()
        if rules.remove_urls:
            text = _URL_RE.sub(" ", text)
        if rules.remove_numbers:
            text = _NUMBER_RE.sub(" ", text)
        if rules.remove_punctuation or rules.remove_symbols:
            text = "".join(self._separate(ch) for ch in text)

        return " ".join(text.split())

    def tokenize(self, text: str) -> list[str]:
        """Clean ``text`` and split it into filtered tokens."""
        rules = self.rules
        tokens = self.clean(text).split()
        if rules.min_token_length > 1:
            tokens = [t for t in tokens if len(t) >= rules.min_token_length]
        if rules.stopwords:
            tokens = [t for t in tokens if t not in rules.stopwords]
        return tokens

    def tokenize_all(self, texts: Iterable[str]) -> list[list[str]]:
        return [self.tokenize(t) for t in texts]

    def _separate(self, ch: str) -> str:
        category = unicodedata.category(ch)
        if self.rules.remove_punctuation and category.startswith("P"):
            return " "
        if self.rules.remove_symbols and category.startswith("S"):
            return " "
        return ch
