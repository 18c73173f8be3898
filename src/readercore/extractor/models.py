"""
Data models for extraction results and intermediate pipeline stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from typing import Any, Dict, List, Optional

from bs4 import Tag


class Direction(str, Enum):
    """Text direction of the extracted content."""

    LTR = "ltr"
    RTL = "rtl"

    @classmethod
    def parse(cls, value: str | None) -> Optional[Direction]:
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ExtractionFlags(Flag):
    """Heuristics switched on for one extraction attempt."""

    NONE = 0
    STRIP_UNLIKELYS = auto()
    WEIGHT_CLASSES = auto()
    CLEAN_CONDITIONALLY = auto()

    @classmethod
    def attempts(cls) -> List[ExtractionFlags]:
        """Flag sets tried in order, each one more permissive than the last."""
        full = cls.STRIP_UNLIKELYS | cls.WEIGHT_CLASSES | cls.CLEAN_CONDITIONALLY
        return [
            full,
            cls.WEIGHT_CLASSES | cls.CLEAN_CONDITIONALLY,
            cls.CLEAN_CONDITIONALLY,
            cls.NONE,
        ]


@dataclass(slots=True, frozen=True)
class Candidate:
    """A scored element and its document-order position."""

    node: Tag
    score: float
    position: int


@dataclass(slots=True)
class PruneResult:
    elements_to_score: List[Tag] = field(default_factory=list)
    byline: Optional[str] = None


@dataclass(slots=True)
class Selection:
    """Outcome of candidate selection."""

    top: Tag
    candidates: List[Candidate]
    fallback: bool = False


@dataclass(slots=True)
class AssembledContent:
    root: Tag
    top: Tag
    direction: Optional[Direction] = None


@dataclass(slots=True, frozen=True)
class Article:
    """Result of a successful extraction."""

    title: str
    content: str
    text_content: str
    length: int
    byline: Optional[str] = None
    direction: Optional[Direction] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    language: Optional[str] = None
    published_time: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the result."""
        if self.length != len(self.text_content):
            raise ValueError("length must equal the character count of text_content")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "byline": self.byline,
            "direction": self.direction.value if self.direction else None,
            "excerpt": self.excerpt,
            "site_name": self.site_name,
            "language": self.language,
            "published_time": self.published_time,
            "length": self.length,
            "content": self.content,
            "text_content": self.text_content,
        }
