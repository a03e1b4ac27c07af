"""Talk Gender Classifier -- Naive Bayes speaker-gender prediction from transcripts."""

__version__ = "0.1.0"

from .classifier import NaiveBayesClassifier, predict, train
from .dataset import corpus_from_frame, load_corpus
from .features import CountVectorizer, Vocabulary, build_matrix, build_vector
from .metrics import ClassificationMetrics, evaluate
from .models import (
    ConfigurationError,
    Corpus,
    Document,
    FeatureVector,
    InvalidInputError,
    LabeledExample,
    ResampleStrategy,
    VocabularyMismatchError,
    VocabularyScope,
)
from .pipeline import (
    ClassificationResult,
    ExperimentResult,
    PipelineConfig,
    TextClassifier,
    compare_strategies,
    run_experiment,
)
from .preprocessing import CleaningRules, TextCleaner
from .sampling import (
    DatasetSplit,
    class_distribution,
    resample,
    shuffled,
    split_dataset,
)

__all__ = [
    # Data
    "Document",
    "Corpus",
    "FeatureVector",
    "LabeledExample",
    "load_corpus",
    "corpus_from_frame",
    # Errors
    "InvalidInputError",
    "ConfigurationError",
    "VocabularyMismatchError",
    # Text and features
    "CleaningRules",
    "TextCleaner",
    "Vocabulary",
    "CountVectorizer",
    "build_vector",
    "build_matrix",
    # Splitting and resampling
    "ResampleStrategy",
    "DatasetSplit",
    "split_dataset",
    "shuffled",
    "resample",
    "class_distribution",
    # Model and evaluation
    "NaiveBayesClassifier",
    "train",
    "predict",
    "ClassificationMetrics",
    "evaluate",
    # Pipeline
    "PipelineConfig",
    "VocabularyScope",
    "TextClassifier",
    "ClassificationResult",
    "ExperimentResult",
    "run_experiment",
    "compare_strategies",
]
