"""Shared test fixtures for reaction-predictor tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from reaction_predictor.models import Message, Reaction
from reaction_predictor.reactor import Reactor


@pytest.fixture
def history_messages() -> list[Message]:
    """A small team history with clearly separated reaction vocabularies."""
    return [
        Message("Shipped the release to production!", [Reaction("tada", 3)]),
        Message("Deploy finished, release is live", [Reaction("tada", 2), Reaction("rocket", 1)]),
        Message("We launched the new release today", [Reaction("tada", 1)]),
        Message("Build is broken again, tests failing", [Reaction("sob", 2)]),
        Message("The build failed on main, broken tests", [Reaction("sob", 1)]),
        Message("Pipeline broken, flaky tests failing everywhere", [Reaction("sob", 3)]),
        Message("Lunch is here, pizza in the kitchen", [Reaction("pizza", 4)]),
        Message("Free pizza for everyone in the kitchen", [Reaction("pizza", 2)]),
        Message("Friday lunch: pizza and salad", [Reaction("pizza", 1)]),
    ]


@pytest.fixture
def history_file(tmp_path: Path, history_messages: list[Message]) -> Path:
    """History export in JSON Lines format, including one unreacted message."""
    path = tmp_path / "history.jsonl"
    lines = [json.dumps(m.to_dict()) for m in history_messages]
    lines.insert(2, json.dumps({"text": "nobody reacted to this", "reactions": []}))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def reactor():
    """A reactor that is closed after the test."""
    r = Reactor()
    yield r
    r.close()
