"""Loading message history exports and replaying them into a reactor.

An export is either a JSON array of messages or JSON Lines, one message per
line, each shaped like::

    {"text": "ship it", "reactions": [{"name": "tada", "count": 2}]}

Messages that received no reactions carry no training signal and are
skipped.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import structlog

from .exceptions import HistoryError, ReactorError
from .models import Message
from .reactor import Reactor

logger = structlog.get_logger(__name__)


@dataclass
class TrainingSummary:
    """What a training run learned from."""

    messages: int = 0
    labels: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"messages": self.messages, "labels": self.labels}


def load_messages(path: str | Path, max_messages: Optional[int] = None) -> list[Message]:
    """Read reacted-to messages from a JSON or JSON Lines export.

    Args:
        path: Export file.
        max_messages: Keep at most this many reacted-to messages.

    Raises:
        HistoryError: If the file is not valid JSON / JSON Lines or a record
            is not a message.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise HistoryError(f"cannot read {path}: {e}") from e

    messages: list[Message] = []
    for lineno, record in _records(raw, path):
        if not isinstance(record, dict):
            raise HistoryError(f"{path}:{lineno}: expected an object, got {type(record).__name__}")
        try:
            message = Message.from_dict(record)
        except (KeyError, TypeError, ValueError, ReactorError) as e:
            raise HistoryError(f"{path}:{lineno}: invalid message: {e}") from e

        if not message.reactions:
            continue
        messages.append(message)
        if max_messages is not None and len(messages) >= max_messages:
            break

    logger.info("loaded message history", path=str(path), messages=len(messages))
    return messages


def _records(raw: str, path: Path) -> Iterable[tuple[int, object]]:
    stripped = raw.lstrip()
    if stripped.startswith("["):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise HistoryError(f"{path}:{e.lineno}: {e.msg}") from e
        yield from enumerate(data, 1)
        return

    for lineno, line in enumerate(raw.splitlines(), 1):
        if not line.strip():
            continue
        try:
            yield lineno, json.loads(line)
        except json.JSONDecodeError as e:
            raise HistoryError(f"{path}:{lineno}: {e.msg}") from e


def collect_labels(messages: Iterable[Message]) -> list[str]:
    """Distinct reaction names, in the order they were first seen."""
    seen: dict[str, None] = {}
    for message in messages:
        for name in message.labels:
            seen.setdefault(name, None)
    return list(seen)


def train_reactor(reactor: Reactor, messages: list[Message]) -> TrainingSummary:
    """Start a new session on ``reactor`` and queue every message.

    Returns once the messages are queued; call
    ``reactor.wait_until_trained()`` to wait for training to finish.
    """
    labels = collect_labels(messages)
    reactor.start_session(labels)
    for message in messages:
        reactor.learn(message)

    logger.info("learning from history", messages=len(messages), labels=len(labels))
    return TrainingSummary(messages=len(messages), labels=labels)
