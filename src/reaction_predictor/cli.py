"""Command-line interface for the reaction predictor.

Trains on a message history export and answers from the terminal, using
the ``click`` and ``rich`` libraries.

Usage::

    reaction-predictor train history.jsonl
    reaction-predictor predict history.jsonl "ship it!"
    reaction-predictor evaluate -k 5 history.jsonl
    reaction-predictor chat history.jsonl
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .config import Settings
from .evaluation import cross_validate
from .exceptions import ReactorError
from .history import TrainingSummary, load_messages, train_reactor
from .logging_config import configure_logging
from .models import Message
from .reactor import Reactor
from .replies import NOT_TRAINED_REPLY, STILL_LEARNING_REPLY, format_help, format_reaction

console = Console()

_history_argument = click.argument("history", type=click.Path(exists=True, dir_okay=False, path_type=Path))
_max_messages_option = click.option(
    "--max-messages", "-m", type=click.IntRange(min=1), default=None,
    help="Maximum number of reacted-to messages to learn from.",
)


@click.group()
@click.version_option(package_name="reaction-predictor")
@click.option("--debug", is_flag=True, help="Increase the logging level to debug.")
@click.option("--verbose", "-v", is_flag=True, help="Log progress at info level.")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines.")
@click.pass_context
def main(ctx: click.Context, debug: bool, verbose: bool, json_logs: bool) -> None:
    """Guess which emoji reaction a message will get.

    Learns from a history of messages and the reactions they received.
    """
    try:
        settings = Settings.from_env()
    except ReactorError as e:
        raise click.UsageError(str(e)) from e

    if debug or settings.debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = "WARNING"
    configure_logging(level, json=json_logs or settings.json_logs)
    ctx.obj = settings


@main.command()
@_history_argument
@_max_messages_option
@click.option("--top", "-n", type=click.IntRange(min=0), default=5,
              help="Most informative terms to show per reaction.")
@click.pass_obj
def train(settings: Settings, history: Path, max_messages: Optional[int], top: int) -> None:
    """Train on HISTORY and show what was learned.

    Example: reaction-predictor train history.jsonl
    """
    with _trained_reactor(settings, history, max_messages) as (reactor, summary):
        model = reactor.model
        table = Table(title=f"Reactions learned from {summary.messages} messages")
        table.add_column("Reaction", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Terms", justify="right")
        if top:
            table.add_column("Top terms", style="white")

        for label in summary.labels:
            row = [label, str(model.document_count(label)), str(model.term_count(label))]
            if top:
                row.append(", ".join(t for t, _ in model.most_informative_terms(label, top)))
            table.add_row(*row)

        console.print(table)
        console.print(f"Vocabulary: {model.vocabulary_size} terms")


@main.command()
@_history_argument
@click.argument("texts", nargs=-1, required=True)
@_max_messages_option
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.option("--reply", is_flag=True, help="Answer the way the chat bot would.")
@click.pass_obj
def predict(
    settings: Settings,
    history: Path,
    texts: tuple[str, ...],
    max_messages: Optional[int],
    output: str,
    reply: bool,
) -> None:
    """Predict the reaction for each of TEXTS after training on HISTORY.

    Example: reaction-predictor predict history.jsonl "ship it!"
    """
    with _trained_reactor(settings, history, max_messages) as (reactor, _):
        predictions = [(text, reactor.predict_detailed(text)) for text in texts]

    if output == "json":
        click.echo(json.dumps(
            [{"text": text, **p.to_dict()} for text, p in predictions],
            indent=2,
        ))
        return

    if reply:
        for _, p in predictions:
            click.echo(format_reaction(p.label))
        return

    table = Table(show_lines=False)
    table.add_column("Text", style="white", max_width=60)
    table.add_column("Reaction", style="cyan")
    table.add_column("Conf.", justify="right")
    for text, p in predictions:
        table.add_row(text, p.label, f"{p.confidence:.0%}")
    console.print(table)


@main.command()
@_history_argument
@_max_messages_option
@click.pass_obj
def labels(settings: Settings, history: Path, max_messages: Optional[int]) -> None:
    """List the reactions found in HISTORY."""
    limit = max_messages or settings.max_messages
    with _trained_reactor(settings, history, limit) as (reactor, _):
        click.echo(format_help(reactor.current_labels(), limit))


@main.command()
@_history_argument
@_max_messages_option
@click.option("--folds", "-k", type=click.IntRange(min=2), default=5, help="Number of folds.")
@click.option("--seed", type=int, default=42, help="Random seed for fold assignment.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def evaluate(
    settings: Settings,
    history: Path,
    max_messages: Optional[int],
    folds: int,
    seed: int,
    output: str,
) -> None:
    """Cross-validate the classifier on HISTORY.

    Each message's most frequent reaction is its expected label.
    """
    messages = _load(history, max_messages or settings.max_messages)
    with console.status("[bold blue]Cross-validating...", spinner="dots"):
        results = cross_validate(messages, k=folds, seed=seed)

    if not results:
        console.print("[bold red]Error:[/] not enough messages to cross-validate")
        sys.exit(1)

    if output == "json":
        click.echo(json.dumps([m.to_dict() for m in results], indent=2))
        return

    table = Table(title=f"{len(results)}-fold cross-validation")
    table.add_column("Fold", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Macro F1", justify="right")
    table.add_column("Weighted F1", justify="right")
    for i, m in enumerate(results, 1):
        table.add_row(str(i), f"{m.accuracy:.2%}", f"{m.macro_f1:.4f}", f"{m.weighted_f1:.4f}")
    console.print(table)

    mean_accuracy = sum(m.accuracy for m in results) / len(results)
    console.print(f"Mean accuracy: [bold]{mean_accuracy:.2%}[/]")


@main.command()
@_history_argument
@_max_messages_option
@click.pass_obj
def chat(settings: Settings, history: Path, max_messages: Optional[int]) -> None:
    """Answer messages from stdin the way the chat bot does.

    ``update`` relearns HISTORY, ``help`` lists known reactions and
    ``quit`` exits; any other line gets a reaction guess.
    """
    limit = max_messages or settings.max_messages
    stdin = click.get_text_stream("stdin")

    with Reactor(queue_size=settings.queue_size, workers=settings.workers) as reactor:
        _learn(reactor, history, limit)
        for line in stdin:
            text = line.strip()
            if not text:
                continue
            if text in ("quit", "exit"):
                break
            if text == "update":
                summary = _learn(reactor, history, limit)
                click.echo(f"I've learned from {summary.messages} messages")
            elif text == "help":
                click.echo(format_help(reactor.current_labels(), limit))
            else:
                click.echo(_reply(reactor, text))


def _reply(reactor: Reactor, text: str) -> str:
    if reactor.is_learning:
        return STILL_LEARNING_REPLY
    if not reactor.is_ready:
        return NOT_TRAINED_REPLY
    return format_reaction(reactor.predict(text))


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _load(history: Path, max_messages: Optional[int]) -> list[Message]:
    try:
        return load_messages(history, max_messages=max_messages)
    except ReactorError as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


def _learn(reactor: Reactor, history: Path, max_messages: int) -> TrainingSummary:
    messages = _load(history, max_messages)
    if not messages:
        console.print("[bold red]Error:[/] no reacted-to messages in history")
        sys.exit(1)
    summary = train_reactor(reactor, messages)
    reactor.wait_until_trained()
    return summary


@contextmanager
def _trained_reactor(
    settings: Settings,
    history: Path,
    max_messages: Optional[int],
) -> Iterator[tuple[Reactor, TrainingSummary]]:
    """Yield a reactor trained on ``history``, closing it afterwards."""
    reactor = Reactor(queue_size=settings.queue_size, workers=settings.workers)
    try:
        with console.status("[bold blue]Learning from history...", spinner="dots"):
            summary = _learn(reactor, history, max_messages or settings.max_messages)
        yield reactor, summary
    finally:
        reactor.close()


if __name__ == "__main__":
    main()
