"""Thread-safe facade that trains and queries the reaction classifier.

A :class:`Reactor` owns one :class:`NaiveBayesClassifier` per training
session plus the :class:`TrainingPipeline` that feeds it. The classifier
math is not reentrant, so every access goes through the reactor's
:class:`ReadWriteLock`:

* ``predict`` scores under the read lock, so predictions run in parallel;
* worker updates and ``start_session`` take the write lock, excluding every
  reader and every other writer.

Only one worker is started by default, which keeps the single-writer
invariant visible at construction time instead of hiding it inside the model.

Example::

    reactor = Reactor()
    reactor.start_session(["tada", "thumbsup"])
    reactor.learn(Message("ship it", [Reaction("tada", 2)]))
    reactor.wait_until_trained()
    reactor.predict("ship it now")  # "tada"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from .classifier import NaiveBayesClassifier
from .exceptions import ModelNotReady, UnknownLabel
from .locks import ReadWriteLock
from .models import Message, Prediction, ReactorState
from .pipeline import DEFAULT_QUEUE_SIZE, DEFAULT_WORKERS, TrainingPipeline
from .preprocessing import Tokenizer

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _Pending:
    """A queued message tagged with the session it was learned in."""

    session: int
    message: Message


class Reactor:
    """Guesses which reaction a message will get.

    Args:
        queue_size: Capacity of the training queue (backpressure threshold).
        workers: Number of training threads. Keep at 1 unless the model is
            made safe for concurrent updates.
        tokenizer: Text normalizer; defaults to :class:`Tokenizer`.
        alpha: Smoothing constant for each session's classifier.
    """

    def __init__(
        self,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        workers: int = DEFAULT_WORKERS,
        tokenizer: Optional[Tokenizer] = None,
        alpha: float = 1.0,
    ) -> None:
        self._tokenizer = tokenizer or Tokenizer()
        self._alpha = alpha
        self._lock = ReadWriteLock()
        self._model: Optional[NaiveBayesClassifier] = None
        self._session = 0
        self._pipeline: TrainingPipeline[_Pending] = TrainingPipeline(
            self._train,
            queue_size=queue_size,
            workers=workers,
            name="reactor-trainer",
        )

    def __enter__(self) -> "Reactor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReactorState:
        with self._lock.read():
            return ReactorState.READY if self._model is not None else ReactorState.UNTRAINED

    @property
    def is_ready(self) -> bool:
        return self.state is ReactorState.READY

    @property
    def is_learning(self) -> bool:
        """Whether queued messages are still waiting to be trained on."""
        return self._pipeline.pending > 0

    @property
    def session(self) -> int:
        """Number of training sessions started so far."""
        with self._lock.read():
            return self._session

    @property
    def model(self) -> Optional[NaiveBayesClassifier]:
        """The current classifier. Read it only once training is idle."""
        return self._model

    def current_labels(self) -> list[str]:
        """Labels of the current session, or ``[]`` when untrained."""
        with self._lock.read():
            return self._model.labels if self._model is not None else []

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start_session(self, labels: list[str]) -> None:
        """Replace the model with a fresh one over ``labels``.

        Waits for in-flight predictions and updates to finish, and blocks new
        ones until the swap is done. Messages still queued from an earlier
        session are discarded rather than trained on the new model.

        Raises:
            InvalidConfiguration: If ``labels`` is empty or has duplicates.
                The current model is left untouched.
        """
        model = NaiveBayesClassifier(labels, alpha=self._alpha)
        with self._lock.write():
            self._model = model
            self._session += 1
            session = self._session
        logger.info("training session started", session=session, labels=len(model.labels))

    def learn(self, message: Message) -> None:
        """Queue ``message`` for training; blocks while the queue is full.

        Messages learned before any session has started are discarded.
        """
        with self._lock.read():
            ready = self._model is not None
            session = self._session
        if not ready:
            logger.debug("no model to train, message discarded", text=message.text)
            return
        self._pipeline.submit(_Pending(session=session, message=message))

    def predict(self, text: str) -> str:
        """Return the most likely reaction label for ``text``.

        Raises:
            ModelNotReady: If no training session has started.
        """
        return self.predict_detailed(text).label

    def predict_detailed(self, text: str) -> Prediction:
        """Like :meth:`predict` but returns every label's score."""
        document = self._tokenizer.tokenize(text)
        with self._lock.read():
            if self._model is None:
                raise ModelNotReady("no training session has been started")
            prediction = self._model.score(document)
        logger.debug("scored message", text=text, label=prediction.label, scores=prediction.scores)
        return prediction

    def wait_until_trained(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued message has been trained on."""
        return self._pipeline.join(timeout)

    def close(self, wait: bool = True) -> None:
        """Stop accepting messages and finish training on the queued ones."""
        self._pipeline.close(wait=wait)

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def _train(self, pending: _Pending) -> None:
        message = pending.message
        document = self._tokenizer.tokenize(message.text)

        with self._lock.write():
            model = self._model
            if model is None or pending.session != self._session:
                logger.debug("message from a previous session discarded", session=pending.session)
                return

            unknown = [r.name for r in message.reactions if r.name not in model]
            if unknown:
                # All or nothing: a message is never partially learned.
                logger.warning(
                    "message has unknown labels, skipped",
                    error=str(UnknownLabel(unknown[0])),
                    labels=unknown,
                    text=message.text,
                )
                return

            for reaction in message.reactions:
                model.update(document, reaction.name, reaction.count)

        logger.debug(
            "trained on message",
            text=message.text,
            terms=document,
            reactions=[str(r) for r in message.reactions],
        )
