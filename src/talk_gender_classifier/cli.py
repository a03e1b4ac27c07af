"""Command-line interface for the talk gender classifier.

Provides ``train``, ``compare``, ``predict`` and ``features`` commands with
rich terminal output using the ``click`` and ``rich`` libraries. Every
pipeline option can also be set through a ``TALKNB_*`` environment
variable, including from a ``.env`` file in the working directory.

Usage::

    talknb train talks.csv --model model.json --strategy both --seed 7
    talknb compare talks.csv --strategies none,over,under,both
    talknb predict model.json "Thank you. (Applause)"
    talknb features model.json --class female --top 15
"""

from __future__ import annotations

import functools
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .dataset import DEFAULT_LABEL_COLUMN, DEFAULT_TEXT_COLUMN, load_corpus
from .metrics import ClassificationMetrics
from .models import ResampleStrategy, VocabularyScope
from .pipeline import (
    ExperimentResult,
    PipelineConfig,
    TextClassifier,
    compare_strategies,
    run_experiment,
)

console = Console()

_STRATEGIES = [s.value for s in ResampleStrategy]
_SCOPES = [s.value for s in VocabularyScope]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_ratios(ctx, param, value: str) -> tuple[float, ...]:
    try:
        return tuple(float(part) for part in value.split(","))
    except ValueError:
        raise click.BadParameter(f"expected comma-separated numbers, got '{value}'") from None


def _fail(message: object) -> None:
    console.print(f"[bold red]Error:[/] {escape(str(message))}")
    sys.exit(1)


def pipeline_options(func: Callable) -> Callable:
    """Dataset and experiment options shared by ``train`` and ``compare``."""
    options = [
        click.argument("dataset", type=click.Path(exists=True, dir_okay=False, path_type=Path)),
        click.option("--text-column", default=DEFAULT_TEXT_COLUMN, show_default=True,
                     envvar="TALKNB_TEXT_COLUMN", help="Column holding the transcript."),
        click.option("--label-column", default=DEFAULT_LABEL_COLUMN, show_default=True,
                     envvar="TALKNB_LABEL_COLUMN", help="Column holding the class label."),
        click.option("--id-column", default=None, envvar="TALKNB_ID_COLUMN",
                     help="Column holding a document id (default: row number)."),
        click.option("--stopwords", "stopword_language", default="english", show_default=True,
                     envvar="TALKNB_STOPWORDS", help="Built-in stopword list (english, none)."),
        click.option("--stopwords-file", type=click.Path(exists=True, dir_okay=False),
                     default=None, envvar="TALKNB_STOPWORDS_FILE",
                     help="Newline-separated stopword file, overrides --stopwords."),
        click.option("--min-token-length", type=int, default=2, show_default=True,
                     envvar="TALKNB_MIN_TOKEN_LENGTH"),
        click.option("--split", "split_ratios", default="0.6,0.2,0.2", show_default=True,
                     callback=_parse_ratios, envvar="TALKNB_SPLIT",
                     help="Train,dev,test fractions."),
        click.option("--target-size", type=int, default=None, envvar="TALKNB_TARGET_SIZE",
                     help="Corpus size after resampling."),
        click.option("--minority-fraction", type=float, default=None,
                     envvar="TALKNB_MINORITY_FRACTION",
                     help="Minority class share after resampling."),
        click.option("--seed", type=int, default=42, show_default=True, envvar="TALKNB_SEED"),
        click.option("--vocabulary-scope", type=click.Choice(_SCOPES), default="train",
                     show_default=True, envvar="TALKNB_VOCABULARY_SCOPE",
                     help="Build the vocabulary from the training split or the whole corpus."),
        click.option("--min-count", type=int, default=1, show_default=True,
                     envvar="TALKNB_MIN_COUNT", help="Minimum term count for the vocabulary."),
        click.option("--max-features", type=int, default=None, envvar="TALKNB_MAX_FEATURES",
                     help="Maximum vocabulary size."),
        click.option("--alpha", type=float, default=1.0, show_default=True,
                     envvar="TALKNB_ALPHA", help="Naive Bayes smoothing constant."),
        click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
                     help="Output format."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(strategy: str, params: dict) -> PipelineConfig:
    return PipelineConfig(
        stopword_language=params["stopword_language"],
        stopwords_file=params["stopwords_file"],
        min_token_length=params["min_token_length"],
        split_ratios=params["split_ratios"],
        strategy=strategy,
        target_size=params["target_size"],
        minority_fraction=params["minority_fraction"],
        seed=params["seed"],
        vocabulary_scope=params["vocabulary_scope"],
        min_count=params["min_count"],
        max_features=params["max_features"],
        alpha=params["alpha"],
    )


def _load(params: dict):
    return load_corpus(
        params["dataset"],
        text_column=params["text_column"],
        label_column=params["label_column"],
        id_column=params["id_column"],
    )


def _handle_errors(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ValueError, KeyError, OSError, RuntimeError) as e:
            _fail(e)

    return wrapper


@click.group()
@click.version_option(package_name="talk-gender-classifier")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def main(verbose: bool) -> None:
    """Naive Bayes speaker-gender classification for talk transcripts.

    Trains on a CSV of transcripts and labels, and measures how over-,
    under- and combined resampling change per-class recall.
    """
    load_dotenv()
    _configure_logging(verbose)


@main.command()
@pipeline_options
@click.option("--strategy", type=click.Choice(_STRATEGIES), default="none", show_default=True,
              envvar="TALKNB_STRATEGY", help="Resampling applied before splitting.")
@click.option("--model", "-m", "model_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Save the trained model to this JSON file.")
@click.option("--metrics-csv", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Export per-class test metrics as CSV.")
@_handle_errors
def train(strategy: str, model_path: Optional[Path], metrics_csv: Optional[Path],
          **params) -> None:
    """Train and evaluate one model.

    Example: talknb train talks.csv --strategy both --seed 7 -m model.json
    """
    corpus = _load(params)
    config = _build_config(strategy, params)

    with console.status("[bold blue]Training...", spinner="dots"):
        result = run_experiment(corpus, config)

    if params["output"] == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_experiment(result)

    if model_path:
        result.classifier.save(model_path)
        console.print(f"[dim]Model saved to {model_path}[/]")
    if metrics_csv:
        metrics_csv.parent.mkdir(parents=True, exist_ok=True)
        result.test_metrics.to_frame().to_csv(metrics_csv, index=False)
        console.print(f"[dim]Test metrics saved to {metrics_csv}[/]")


@main.command()
@pipeline_options
@click.option("--strategies", default=",".join(_STRATEGIES), show_default=True,
              help="Comma-separated strategies to compare.")
@_handle_errors
def compare(strategies: str, **params) -> None:
    """Compare resampling strategies on the same data and seed.

    Example: talknb compare talks.csv --minority-fraction 0.5
    """
    names = [s.strip() for s in strategies.split(",") if s.strip()]
    unknown = [s for s in names if s not in _STRATEGIES]
    if unknown:
        raise click.BadParameter(f"unknown strategies {unknown}", param_hint="--strategies")

    corpus = _load(params)
    # The baseline run drops the resampling targets
    config = _build_config("none", params)

    with console.status("[bold blue]Running experiments...", spinner="dots"):
        results = compare_strategies(corpus, config, names)

    if params["output"] == "json":
        click.echo(json.dumps({k: r.to_dict() for k, r in results.items()}, indent=2))
    else:
        _render_comparison(results)


@main.command()
@click.argument("model_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("texts", nargs=-1)
@click.option("--file", "-f", "files", multiple=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Classify the contents of a text file (repeatable).")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@_handle_errors
def predict(model_path: Path, texts: tuple[str, ...], files: tuple[Path, ...],
            output: str) -> None:
    """Classify transcripts with a saved model.

    Example: talknb predict model.json "Thank you so much. (Applause)"
    """
    inputs = [(f"text {i}", t) for i, t in enumerate(texts, 1)]
    inputs += [(f.name, f.read_text(encoding="utf-8")) for f in files]
    if not inputs:
        raise click.UsageError("Give at least one TEXT or --file.")

    classifier = TextClassifier.load(model_path)
    results = classifier.classify_batch([text for _, text in inputs])

    if output == "json":
        click.echo(json.dumps(
            [{"input": name, **r.to_dict()} for (name, _), r in zip(inputs, results)],
            indent=2,
        ))
        return

    table = Table(title="Predictions")
    table.add_column("Input", style="cyan")
    table.add_column("Predicted", style="bold")
    table.add_column("Confidence", justify="right")
    for (name, _), result in zip(inputs, results):
        table.add_row(name, result.predicted_class, f"{result.confidence:.1%}")
    console.print(table)


@main.command()
@click.argument("model_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--class", "-c", "class_name", required=True, help="Class to explain.")
@click.option("--top", "-n", type=int, default=20, show_default=True)
@_handle_errors
def features(model_path: Path, class_name: str, top: int) -> None:
    """Show the terms most indicative of a class.

    Example: talknb features model.json --class female
    """
    classifier = TextClassifier.load(model_path)
    table = Table(title=f"Most informative terms: {class_name}")
    table.add_column("#", justify="right", width=4)
    table.add_column("Term", style="cyan")
    table.add_column("Log ratio", justify="right")
    for i, (term, score) in enumerate(classifier.most_informative_features(class_name, top), 1):
        table.add_row(str(i), term, f"{score:.3f}")
    console.print(table)


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------


def _render_experiment(result: ExperimentResult) -> None:
    """Render one experiment with rich formatting."""
    config = result.config
    console.print()
    console.print(Panel(
        f"Documents: {result.corpus_size} (skipped {result.skipped_rows}) | "
        f"Vocabulary: {result.vocabulary_size} ({config.vocabulary_scope.value}) | "
        f"Strategy: {config.strategy.value} | Seed: {config.seed}\n"
        f"Split: train {result.split_sizes['train']} / dev {result.split_sizes['dev']} / "
        f"test {result.split_sizes['test']}",
        title="Naive Bayes experiment",
        border_style="blue",
    ))
    _render_distributions(result)
    _render_metrics(result.dev_metrics, "Dev")
    _render_metrics(result.test_metrics, "Test")


def _render_distributions(result: ExperimentResult) -> None:
    table = Table(title="Class balance")
    table.add_column("Set", style="cyan")
    labels = sorted(result.distribution_before)
    for label in labels:
        table.add_column(label, justify="right")

    rows = [("corpus", result.distribution_before), ("resampled", result.distribution_after)]
    rows += list(result.split_distributions.items())
    for name, dist in rows:
        cells = []
        for label in labels:
            entry = dist.get(label)
            cells.append(f"{entry['count']} ({entry['fraction']:.1%})" if entry else "0")
        table.add_row(name, *cells)
    console.print(table)


def _render_metrics(metrics: ClassificationMetrics, title: str) -> None:
    table = Table(title=f"{title}: accuracy {metrics.accuracy:.2%} "
                        f"({metrics.correct}/{metrics.total})")
    table.add_column("Class", style="cyan")
    table.add_column("Precision", justify="right")
    table.add_column("Recall", justify="right")
    table.add_column("F1", justify="right")
    table.add_column("Support", justify="right")
    for cls in metrics.labels:
        m = metrics.per_class[cls]
        table.add_row(cls, f"{m['precision']:.3f}", f"{m['recall']:.3f}", f"{m['f1']:.3f}",
                      str(metrics.support.get(cls, 0)))
    console.print(table)

    matrix = Table(title=f"{title} confusion matrix (rows = actual)")
    matrix.add_column("", style="cyan")
    for cls in metrics.labels:
        matrix.add_column(cls, justify="right")
    for actual in metrics.labels:
        matrix.add_row(actual, *(str(metrics.confusion_matrix[actual][p]) for p in metrics.labels))
    console.print(matrix)
    console.print()


def _render_comparison(results: dict[str, ExperimentResult]) -> None:
    labels = sorted({label for r in results.values() for label in r.test_metrics.labels})
    table = Table(title="Resampling comparison (test set)")
    table.add_column("Strategy", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Accuracy", justify="right")
    for label in labels:
        table.add_column(f"Recall {label}", justify="right")
    table.add_column("Macro F1", justify="right")

    for name, result in results.items():
        m = result.test_metrics
        table.add_row(
            name,
            str(sum(result.split_sizes.values())),
            f"{m.accuracy:.3f}",
            *(f"{m.recall(label):.3f}" if label in m.per_class else "-" for label in labels),
            f"{m.macro_f1:.3f}",
        )
    console.print(table)


if __name__ == "__main__":
    main()
