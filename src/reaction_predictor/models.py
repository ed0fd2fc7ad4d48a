"""Data models for reaction prediction."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .exceptions import InvalidArgument


class ReactorState(str, Enum):
    """Lifecycle states of a :class:`~reaction_predictor.reactor.Reactor`."""

    UNTRAINED = "untrained"
    READY = "ready"


@dataclass(frozen=True)
class Reaction:
    """A label observed on a message, with how many times it was added."""

    name: str
    count: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.count, int) or self.count < 1:
            raise InvalidArgument(f"reaction count must be >= 1, got {self.count!r}")

    def to_dict(self) -> dict:
        return {"name": self.name, "count": self.count}

    def __str__(self) -> str:
        return f"{self.name}({self.count})"


@dataclass
class Message:
    """A text message together with the reactions it received."""

    text: str
    reactions: list[Reaction] = field(default_factory=list)

    @property
    def labels(self) -> list[str]:
        return [r.name for r in self.reactions]

    @property
    def total_weight(self) -> int:
        return sum(r.count for r in self.reactions)

    @property
    def dominant_label(self) -> Optional[str]:
        """Reaction with the highest count; the first one wins ties."""
        best: Optional[Reaction] = None
        for reaction in self.reactions:
            if best is None or reaction.count > best.count:
                best = reaction
        return best.name if best else None

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "reactions": [r.to_dict() for r in self.reactions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        """Build a message from ``{"text": ..., "reactions": [{"name", "count"}]}``."""
        reactions = [
            Reaction(name=str(r["name"]), count=int(r.get("count", 1)))
            for r in data.get("reactions") or []
        ]
        return cls(text=str(data.get("text", "")), reactions=reactions)


@dataclass
class Prediction:
    """Result of scoring one document against every configured label.

    Attributes:
        label: Winning label (first in configured order on ties).
        scores: Natural-log posterior surrogate per label. Only the relative
            ordering between labels is meaningful.
    """

    label: str
    scores: dict[str, float] = field(default_factory=dict)

    @property
    def probabilities(self) -> dict[str, float]:
        """Scores normalized to probabilities with log-sum-exp."""
        if not self.scores:
            return {}
        max_score = max(self.scores.values())
        exp_scores = {lbl: math.exp(s - max_score) for lbl, s in self.scores.items()}
        total = sum(exp_scores.values())
        return {lbl: s / total for lbl, s in exp_scores.items()}

    @property
    def confidence(self) -> float:
        return self.probabilities.get(self.label, 0.0)

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "confidence": round(self.confidence, 4),
            "scores": {k: round(v, 4) for k, v in self.scores.items()},
        }
