"""Offline evaluation of reaction prediction on labeled history.

Each message's ground truth is its dominant reaction (the one added most
often). Cross-validation trains a fresh classifier per fold directly, without
a reactor, since nothing is served concurrently during evaluation.
"""

from __future__ import annotations

import random
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Optional

from .classifier import NaiveBayesClassifier
from .exceptions import InvalidArgument
from .history import collect_labels
from .models import Message
from .preprocessing import Tokenizer


@dataclass
class ClassificationMetrics:
    """Evaluation metrics for a set of predictions.

    Attributes:
        accuracy: Fraction of exact matches.
        per_label: Precision, recall and F1 per label.
        macro_f1: Unweighted mean F1 across labels.
        weighted_f1: Support-weighted mean F1 across labels.
        confusion_matrix: ``{true: {predicted: count}}``.
        support: Number of true examples per label.
    """

    accuracy: float = 0.0
    per_label: dict[str, dict[str, float]] = field(default_factory=dict)
    macro_f1: float = 0.0
    weighted_f1: float = 0.0
    confusion_matrix: dict[str, dict[str, int]] = field(default_factory=dict)
    support: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "accuracy": round(self.accuracy, 4),
            "macro_f1": round(self.macro_f1, 4),
            "weighted_f1": round(self.weighted_f1, 4),
            "per_label": {
                lbl: {k: round(v, 4) for k, v in m.items()}
                for lbl, m in self.per_label.items()
            },
            "confusion_matrix": self.confusion_matrix,
            "support": self.support,
        }

    def summary(self) -> str:
        lines = [
            f"Accuracy: {self.accuracy:.2%}",
            f"Macro F1: {self.macro_f1:.4f}",
            f"Weighted F1: {self.weighted_f1:.4f}",
        ]
        for lbl in sorted(self.per_label):
            m = self.per_label[lbl]
            lines.append(
                f"  {lbl:<20} P={m['precision']:.3f} R={m['recall']:.3f} "
                f"F1={m['f1']:.3f} n={self.support.get(lbl, 0)}"
            )
        return "\n".join(lines)


def compute_metrics(y_true: list[str], y_pred: list[str]) -> ClassificationMetrics:
    """Compare predicted labels against ground truth.

    Raises:
        InvalidArgument: If the two lists differ in length.
    """
    if len(y_true) != len(y_pred):
        raise InvalidArgument("y_true and y_pred must have the same length")

    labels = sorted(set(y_true) | set(y_pred))
    matrix = {t: dict.fromkeys(labels, 0) for t in labels}
    for t, p in zip(y_true, y_pred):
        matrix[t][p] += 1

    support = Counter(y_true)
    per_label: dict[str, dict[str, float]] = {}
    for lbl in labels:
        tp = matrix[lbl][lbl]
        predicted = sum(matrix[t][lbl] for t in labels)
        actual = sum(matrix[lbl].values())
        precision = tp / predicted if predicted else 0.0
        recall = tp / actual if actual else 0.0
        f1 = 2 * precision * recall / (precision + recall) if precision + recall else 0.0
        per_label[lbl] = {"precision": precision, "recall": recall, "f1": f1}

    n = len(y_true)
    correct = sum(1 for t, p in zip(y_true, y_pred) if t == p)
    return ClassificationMetrics(
        accuracy=correct / n if n else 0.0,
        per_label=per_label,
        macro_f1=sum(m["f1"] for m in per_label.values()) / len(labels) if labels else 0.0,
        weighted_f1=(
            sum(per_label[lbl]["f1"] * support[lbl] for lbl in labels) / n if n else 0.0
        ),
        confusion_matrix=matrix,
        support=dict(support),
    )


def stratified_k_fold(
    labels: list[str],
    k: int = 5,
    seed: int = 42,
) -> list[tuple[list[int], list[int]]]:
    """Split indices into ``k`` (train, test) folds with similar label mixes."""
    if k < 2:
        raise InvalidArgument(f"k must be >= 2, got {k}")

    rng = random.Random(seed)
    by_label: dict[str, list[int]] = defaultdict(list)
    for idx, lbl in enumerate(labels):
        by_label[lbl].append(idx)

    fold_of = [0] * len(labels)
    for indices in by_label.values():
        rng.shuffle(indices)
        for i, idx in enumerate(indices):
            fold_of[idx] = i % k

    return [
        (
            [i for i, f in enumerate(fold_of) if f != fold],
            [i for i, f in enumerate(fold_of) if f == fold],
        )
        for fold in range(k)
    ]


def cross_validate(
    messages: list[Message],
    k: int = 5,
    seed: int = 42,
    tokenizer: Optional[Tokenizer] = None,
    alpha: float = 1.0,
) -> list[ClassificationMetrics]:
    """Run stratified k-fold cross-validation over reacted-to messages.

    Folds whose training split is empty are skipped.
    """
    tokenizer = tokenizer or Tokenizer()
    messages = [m for m in messages if m.reactions]
    truth = [m.dominant_label for m in messages]
    documents = [tokenizer.tokenize(m.text) for m in messages]

    results: list[ClassificationMetrics] = []
    for train_idx, test_idx in stratified_k_fold(truth, k=k, seed=seed):
        if not train_idx or not test_idx:
            continue
        model = NaiveBayesClassifier(
            collect_labels(messages[i] for i in train_idx),
            alpha=alpha,
        )
        for i in train_idx:
            for reaction in messages[i].reactions:
                model.update(documents[i], reaction.name, reaction.count)

        predictions = [model.score(documents[i]).label for i in test_idx]
        results.append(compute_metrics([truth[i] for i in test_idx], predictions))
    return results
