"""
Minimum-length acceptance check for sanitized content.
"""

from __future__ import annotations

from enum import Enum

from bs4 import Tag


class GateState(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def text_projection(content: Tag) -> str:
    """Plain text of a content subtree, as reported in ``Article.text_content``."""
    return content.get_text().strip()


class ReadabilityGate:
    """Single-use check: ``PENDING`` moves to ``ACCEPTED`` or ``REJECTED`` exactly once."""

    def __init__(self, char_threshold: int) -> None:
        self.char_threshold = char_threshold
        self.state = GateState.PENDING
        self.length = 0

    def evaluate(self, content: Tag) -> GateState:
        if self.state is not GateState.PENDING:
            raise RuntimeError(f"gate already {self.state.value}")
        self.length = len(text_projection(content))
        self.state = GateState.ACCEPTED if self.length >= self.char_threshold else GateState.REJECTED
        return self.state

    @property
    def accepted(self) -> bool:
        return self.state is GateState.ACCEPTED
