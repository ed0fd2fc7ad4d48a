"""Tests for loading history exports and replaying them."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from reaction_predictor.exceptions import HistoryError
from reaction_predictor.history import collect_labels, load_messages, train_reactor
from reaction_predictor.models import Message, Reaction
from reaction_predictor.reactor import Reactor


class TestLoadMessages:
    """Tests for reading JSON and JSON Lines exports."""

    def test_jsonl_skips_unreacted(self, history_file: Path, history_messages) -> None:
        assert load_messages(history_file) == history_messages

    def test_json_array(self, tmp_path: Path, history_messages) -> None:
        path = tmp_path / "history.json"
        path.write_text(json.dumps([m.to_dict() for m in history_messages]), encoding="utf-8")
        assert load_messages(path) == history_messages

    def test_max_messages(self, history_file: Path) -> None:
        messages = load_messages(history_file, max_messages=4)
        assert len(messages) == 4
        assert messages[0].text == "Shipped the release to production!"

    def test_blank_lines_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "h.jsonl"
        path.write_text('\n{"text": "a", "reactions": [{"name": "x"}]}\n\n', encoding="utf-8")
        assert load_messages(path) == [Message("a", [Reaction("x")])]

    def test_malformed_line_reports_line_number(self, tmp_path: Path) -> None:
        path = tmp_path / "h.jsonl"
        path.write_text('{"text": "a", "reactions": []}\n{oops\n', encoding="utf-8")
        with pytest.raises(HistoryError, match=":2:"):
            load_messages(path)

    def test_non_object_record(self, tmp_path: Path) -> None:
        path = tmp_path / "h.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(HistoryError, match="expected an object"):
            load_messages(path)

    def test_invalid_reaction_count(self, tmp_path: Path) -> None:
        path = tmp_path / "h.jsonl"
        path.write_text('{"text": "a", "reactions": [{"name": "x", "count": 0}]}\n', encoding="utf-8")
        with pytest.raises(HistoryError, match="invalid message"):
            load_messages(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(HistoryError, match="cannot read"):
            load_messages(tmp_path / "missing.jsonl")


class TestCollectLabels:
    """Tests for label discovery."""

    def test_first_seen_order(self, history_messages) -> None:
        assert collect_labels(history_messages) == ["tada", "rocket", "sob", "pizza"]

    def test_empty(self) -> None:
        assert collect_labels([]) == []


class TestTrainReactor:
    """Tests for replaying history into a reactor."""

    def test_trains_and_summarizes(self, reactor: Reactor, history_messages) -> None:
        summary = train_reactor(reactor, history_messages)
        assert summary.messages == len(history_messages)
        assert summary.labels == ["tada", "rocket", "sob", "pizza"]
        assert reactor.wait_until_trained(5)
        assert reactor.current_labels() == summary.labels
        assert reactor.predict("kitchen pizza") == "pizza"

    def test_retraining_replaces_model(self, reactor: Reactor, history_messages) -> None:
        train_reactor(reactor, history_messages)
        train_reactor(reactor, [Message("only one", [Reaction("solo")])])
        assert reactor.wait_until_trained(5)
        assert reactor.current_labels() == ["solo"]
        assert reactor.predict("pizza") == "solo"
