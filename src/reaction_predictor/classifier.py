"""Incremental multinomial Naive Bayes over a fixed label set.

The model is trained one document at a time, which lets it absorb a stream
of historical messages while predictions are being served. It keeps raw
counts only; log-probabilities are derived at scoring time with Laplace
smoothing, so a model that has seen nothing still produces a valid (uniform)
answer.

The model is **not** thread-safe. :meth:`NaiveBayesClassifier.update` must
never run concurrently with itself or with :meth:`NaiveBayesClassifier.score`;
:class:`~reaction_predictor.reactor.Reactor` enforces this with a read/write
lock.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Sequence

from .exceptions import InvalidArgument, InvalidConfiguration, UnknownLabel
from .models import Prediction


class NaiveBayesClassifier:
    """Multinomial Naive Bayes classifier with Laplace smoothing.

    Args:
        labels: Ordered, non-empty, duplicate-free label set. The order is
            used to break ties between equal scores.
        alpha: Additive smoothing constant (1.0 = Laplace smoothing).

    Raises:
        InvalidConfiguration: If ``labels`` is empty or contains duplicates,
            or ``alpha`` is not positive.
    """

    def __init__(self, labels: Iterable[str], alpha: float = 1.0) -> None:
        labels = list(labels)
        if not labels:
            raise InvalidConfiguration("at least one label is required")
        duplicates = sorted(lbl for lbl, n in Counter(labels).items() if n > 1)
        if duplicates:
            raise InvalidConfiguration(f"duplicate labels: {', '.join(duplicates)}")
        if alpha <= 0:
            raise InvalidConfiguration(f"alpha must be positive, got {alpha}")

        self.alpha = alpha
        self._labels: tuple[str, ...] = tuple(labels)
        self._term_counts: dict[str, Counter[str]] = {lbl: Counter() for lbl in labels}
        self._term_totals: dict[str, int] = dict.fromkeys(labels, 0)
        self._doc_counts: dict[str, int] = dict.fromkeys(labels, 0)
        self._vocabulary: set[str] = set()

    def __contains__(self, label: object) -> bool:
        return label in self._doc_counts

    def __repr__(self) -> str:
        return (
            f"NaiveBayesClassifier(labels={list(self._labels)!r}, "
            f"documents={self.total_documents}, vocabulary={self.vocabulary_size})"
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def labels(self) -> list[str]:
        """Configured labels in construction order."""
        return list(self._labels)

    @property
    def vocabulary_size(self) -> int:
        return len(self._vocabulary)

    @property
    def total_documents(self) -> int:
        return sum(self._doc_counts.values())

    def document_count(self, label: str) -> int:
        self._check_label(label)
        return self._doc_counts[label]

    def term_count(self, label: str) -> int:
        """Total number of (weighted) term occurrences learned for ``label``."""
        self._check_label(label)
        return self._term_totals[label]

    def count(self, term: str, label: str) -> int:
        self._check_label(label)
        return self._term_counts[label][term]

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def update(self, document: Sequence[str], label: str, weight: int = 1) -> None:
        """Learn ``document`` as an example of ``label``.

        A weight of ``n`` has the same effect on the counts as ``n`` calls
        with weight 1.

        Raises:
            UnknownLabel: If ``label`` is not configured.
            InvalidArgument: If ``weight`` is not a positive integer.
        """
        self._check_label(label)
        if isinstance(weight, bool) or not isinstance(weight, int) or weight <= 0:
            raise InvalidArgument(f"weight must be a positive integer, got {weight!r}")

        counts = self._term_counts[label]
        for term in document:
            counts[term] += weight
        self._vocabulary.update(document)
        self._term_totals[label] += len(document) * weight
        self._doc_counts[label] += weight

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def score(self, document: Sequence[str]) -> Prediction:
        """Score ``document`` against every label.

        Returns:
            Prediction with the argmax label and the log-score of every label.
        """
        scores = self.log_scores(document)
        best = self._labels[0]
        for label in self._labels[1:]:
            if scores[label] > scores[best]:
                best = label
        return Prediction(label=best, scores=scores)

    def log_scores(self, document: Sequence[str]) -> dict[str, float]:
        """Unnormalized log posterior for each label, in label order."""
        vocab_size = len(self._vocabulary) + sum(
            1 for term in set(document) if term not in self._vocabulary
        )
        # Empty model and empty document: keep the denominator positive.
        vocab_size = max(vocab_size, 1)

        total_docs = self.total_documents
        scores: dict[str, float] = {}
        for label in self._labels:
            if total_docs:
                prior = self._doc_counts[label] / total_docs
            else:
                prior = 1 / len(self._labels)
            # A label with no documents gets zero prior mass.
            score = math.log(prior) if prior > 0 else -math.inf

            counts = self._term_counts[label]
            denominator = self._term_totals[label] + self.alpha * vocab_size
            for term in document:
                score += math.log((counts[term] + self.alpha) / denominator)
            scores[label] = score
        return scores

    def most_informative_terms(
        self,
        label: str,
        top_n: int = 20,
    ) -> list[tuple[str, float]]:
        """Terms whose smoothed likelihood under ``label`` most exceeds the others'.

        Measures the log-likelihood ratio of each term under ``label``
        against the mean log-likelihood under the remaining labels.

        Returns:
            ``(term, ratio)`` tuples sorted by ratio, descending.
        """
        self._check_label(label)
        vocab_size = max(len(self._vocabulary), 1)

        def log_prob(term: str, lbl: str) -> float:
            denominator = self._term_totals[lbl] + self.alpha * vocab_size
            return math.log((self._term_counts[lbl][term] + self.alpha) / denominator)

        others = [lbl for lbl in self._labels if lbl != label]
        ratios: list[tuple[str, float]] = []
        for term in self._term_counts[label]:
            target = log_prob(term, label)
            if others:
                target -= sum(log_prob(term, o) for o in others) / len(others)
            ratios.append((term, round(target, 4)))

        ratios.sort(key=lambda x: (-x[1], x[0]))
        return ratios[:top_n]

    def _check_label(self, label: str) -> None:
        if label not in self._doc_counts:
            raise UnknownLabel(label)
