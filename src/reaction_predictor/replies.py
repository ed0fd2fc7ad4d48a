"""User-facing text for reaction guesses and help."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Optional

PREFIXES: tuple[str, ...] = (
    "I'm guessing the reaction will be",
    "That looks like a",
    "That's sure to get a",
    "I bet that people will react with",
)

NOT_TRAINED_REPLY = "I don't know anything about you yet!"
STILL_LEARNING_REPLY = "Hold on, I'm still learning about your team!"


def format_reaction(label: str, rng: Optional[random.Random] = None) -> str:
    """Reply announcing ``label`` behind a randomly chosen prefix."""
    prefix = (rng or random).choice(PREFIXES)
    return f"{prefix} :{label}:"


def format_label_list(labels: Sequence[str]) -> str:
    """Render labels as emoji codes: ``:a:, :b:, and :c:``."""
    codes = [f":{label}:" for label in labels]
    if len(codes) <= 1:
        return "".join(codes)
    return ", ".join(codes[:-1]) + ", and " + codes[-1]


def format_help(labels: Sequence[str], max_messages: int) -> str:
    text = (
        "I guess reactions to messages based on up to the past "
        f"{max_messages} seen in each channel."
    )
    if labels:
        text += " I'm currently aware of the following reactions:\n " + format_label_list(labels)
    return text
