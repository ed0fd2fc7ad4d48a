"""Tests for the Reactor facade: sessions, learning and prediction."""

from __future__ import annotations

import threading

import pytest

from reaction_predictor.exceptions import InvalidConfiguration, ModelNotReady, PipelineClosed
from reaction_predictor.models import Message, Reaction, ReactorState
from reaction_predictor.preprocessing import Tokenizer
from reaction_predictor.reactor import Reactor

# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class TestReactorState:
    """Tests for the untrained/ready lifecycle."""

    def test_starts_untrained(self, reactor: Reactor) -> None:
        assert reactor.state is ReactorState.UNTRAINED
        assert not reactor.is_ready
        assert reactor.current_labels() == []
        assert reactor.model is None

    @pytest.mark.parametrize("text", ["", "hello", "words all together"])
    def test_predict_untrained_raises(self, reactor: Reactor, text: str) -> None:
        with pytest.raises(ModelNotReady):
            reactor.predict(text)

    def test_learn_untrained_is_discarded(self, reactor: Reactor) -> None:
        reactor.learn(Message("hello", [Reaction("wave")]))
        assert reactor.wait_until_trained(5)
        assert not reactor.is_learning
        assert reactor.state is ReactorState.UNTRAINED

    def test_start_session_makes_ready(self, reactor: Reactor) -> None:
        reactor.start_session(["a", "b"])
        assert reactor.state is ReactorState.READY
        assert reactor.current_labels() == ["a", "b"]
        assert reactor.session == 1

    @pytest.mark.parametrize("labels", [[], ["a", "a"]])
    def test_invalid_session_leaves_state_unchanged(self, reactor: Reactor, labels) -> None:
        reactor.start_session(["x"])
        with pytest.raises(InvalidConfiguration):
            reactor.start_session(labels)
        assert reactor.current_labels() == ["x"]
        assert reactor.session == 1

    def test_invalid_first_session_stays_untrained(self, reactor: Reactor) -> None:
        with pytest.raises(InvalidConfiguration):
            reactor.start_session([])
        assert reactor.state is ReactorState.UNTRAINED


# ---------------------------------------------------------------------------
# Learning and prediction
# ---------------------------------------------------------------------------


class TestLearnAndPredict:
    """End-to-end training through the pipeline."""

    def test_simple_case(self, reactor: Reactor) -> None:
        reactor.start_session(["a", "b"])
        reactor.learn(Message("words all together", [Reaction("a", 2)]))
        reactor.learn(Message("this is a second string", [Reaction("b", 1)]))
        assert reactor.wait_until_trained(5)
        assert reactor.predict("words all together") == "a"

    def test_history(self, reactor: Reactor, history_messages: list[Message]) -> None:
        reactor.start_session(["tada", "rocket", "sob", "pizza"])
        for message in history_messages:
            reactor.learn(message)
        assert reactor.wait_until_trained(5)

        assert reactor.predict("the release is shipped") == "tada"
        assert reactor.predict("tests are broken") == "sob"
        assert reactor.predict("pizza for lunch?") == "pizza"

    def test_all_reactions_learned(self, reactor: Reactor) -> None:
        reactor.start_session(["a", "b"])
        reactor.learn(Message("one two", [Reaction("a", 3), Reaction("b", 2)]))
        assert reactor.wait_until_trained(5)
        assert reactor.model.term_count("a") == 6
        assert reactor.model.term_count("b") == 4

    def test_unknown_label_drops_whole_message(self, reactor: Reactor) -> None:
        reactor.start_session(["a", "b"])
        reactor.learn(Message("bad data", [Reaction("a"), Reaction("zzz")]))
        reactor.learn(Message("good data", [Reaction("b")]))
        assert reactor.wait_until_trained(5)

        model = reactor.model
        assert model.document_count("a") == 0
        assert model.count("bad", "a") == 0
        assert model.document_count("b") == 1

    def test_predict_detailed(self, reactor: Reactor) -> None:
        reactor.start_session(["a", "b"])
        reactor.learn(Message("words all together", [Reaction("a", 2)]))
        assert reactor.wait_until_trained(5)
        prediction = reactor.predict_detailed("words")
        assert prediction.label == "a"
        assert set(prediction.scores) == {"a", "b"}

    def test_custom_tokenizer(self) -> None:
        with Reactor(tokenizer=Tokenizer(lowercase=False)) as reactor:
            reactor.start_session(["upper", "lower"])
            reactor.learn(Message("LOUD", [Reaction("upper")]))
            reactor.learn(Message("loud", [Reaction("lower")]))
            assert reactor.wait_until_trained(5)
            assert reactor.predict("LOUD LOUD") == "upper"
            assert reactor.predict("loud loud") == "lower"


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class TestSessions:
    """Tests for replacing the model."""

    def test_new_session_labels_only(self, reactor: Reactor) -> None:
        reactor.start_session(["old"])
        reactor.learn(Message("old stuff", [Reaction("old", 5)]))
        assert reactor.wait_until_trained(5)

        reactor.start_session(["new1", "new2"])
        assert reactor.predict("old stuff") in ("new1", "new2")
        assert reactor.current_labels() == ["new1", "new2"]

    def test_queued_messages_from_old_session_discarded(self) -> None:
        gate = threading.Event()
        with Reactor(queue_size=10) as reactor:
            reactor.start_session(["a"])
            original = reactor._train

            def gated(pending) -> None:
                gate.wait(5)
                original(pending)

            reactor._pipeline._handler = gated
            for _ in range(3):
                reactor.learn(Message("stale text", [Reaction("a")]))

            reactor.start_session(["a", "b"])
            reactor.learn(Message("fresh text", [Reaction("b")]))
            gate.set()
            assert reactor.wait_until_trained(5)

            model = reactor.model
            assert model.document_count("a") == 0
            assert model.document_count("b") == 1

    def test_session_counter(self, reactor: Reactor) -> None:
        for i in range(3):
            reactor.start_session([f"label{i}"])
        assert reactor.session == 3


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrentAccess:
    """Tests for predictions served while training runs."""

    def test_predict_during_training(self, history_messages: list[Message]) -> None:
        labels = ["tada", "rocket", "sob", "pizza"]
        errors: list[Exception] = []
        results: list[str] = []
        stop = threading.Event()

        with Reactor(queue_size=3) as reactor:
            reactor.start_session(labels)

            def predictor() -> None:
                while not stop.is_set():
                    try:
                        results.append(reactor.predict("broken release pizza"))
                    except Exception as e:
                        errors.append(e)
                        return

            readers = [threading.Thread(target=predictor) for _ in range(4)]
            for t in readers:
                t.start()
            for _ in range(20):
                for message in history_messages:
                    reactor.learn(message)
            assert reactor.wait_until_trained(10)
            stop.set()
            for t in readers:
                t.join(5)

            assert not errors
            assert results
            assert set(results) <= set(labels)
            total = sum(m.total_weight for m in history_messages) * 20
            assert reactor.model.total_documents == total

    def test_no_message_loss_with_small_queue(self) -> None:
        producers, per_producer = 6, 30
        with Reactor(queue_size=2) as reactor:
            reactor.start_session(["a", "b"])

            def produce(pid: int) -> None:
                for i in range(per_producer):
                    label = "a" if (pid + i) % 2 else "b"
                    reactor.learn(Message(f"p{pid} m{i}", [Reaction(label)]))

            threads = [threading.Thread(target=produce, args=(p,)) for p in range(producers)]
            for t in threads:
                t.start()
            for t in threads:
                t.join(10)
            assert reactor.wait_until_trained(10)
            assert reactor.model.total_documents == producers * per_producer


# ---------------------------------------------------------------------------
# Shutdown
# ---------------------------------------------------------------------------


class TestShutdown:
    """Tests for closing the reactor."""

    def test_close_drains_then_rejects(self) -> None:
        reactor = Reactor()
        reactor.start_session(["a"])
        for i in range(10):
            reactor.learn(Message(f"message {i}", [Reaction("a")]))
        reactor.close()
        assert reactor.model.document_count("a") == 10
        with pytest.raises(PipelineClosed):
            reactor.learn(Message("late", [Reaction("a")]))

    def test_predict_still_works_after_close(self) -> None:
        with Reactor() as reactor:
            reactor.start_session(["a"])
        assert reactor.predict("anything") == "a"
