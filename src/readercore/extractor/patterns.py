"""
Precompiled class/id classifiers.

Each table is built once from ``ScoringConfig`` when the engine is created and
is read-only afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Pattern

from bs4 import Tag

from readercore.config import ScoringConfig
from readercore.exceptions import EngineEvaluationError

COMMAS_RE = re.compile("[,،﹐︐︑⹁⸴⸲，]")
SENTENCE_END_RE = re.compile(r"\.( |$)")
DISPLAY_NONE_RE = re.compile(r"display\s*:\s*none", re.IGNORECASE)
VISIBILITY_HIDDEN_RE = re.compile(r"visibility\s*:\s*hidden", re.IGNORECASE)


def _compile(name: str, fragments: Iterable[str]) -> Optional[Pattern[str]]:
    parts = [f for f in fragments if f]
    if not parts:
        return None
    try:
        return re.compile("|".join(f"(?:{p})" for p in parts), re.IGNORECASE)
    except re.error as e:
        raise EngineEvaluationError(f"invalid {name} pattern", e) from e


def class_tokens(node: Tag) -> List[str]:
    """Lowercased class and id tokens of an element."""
    return f"{node.get('class') or ''} {node.get('id') or ''}".lower().split()


@dataclass(frozen=True)
class PatternTable:
    positive: Optional[Pattern[str]]
    negative: Optional[Pattern[str]]
    negative_exact: FrozenSet[str]
    unlikely: Optional[Pattern[str]]
    maybe: Optional[Pattern[str]]
    byline: Optional[Pattern[str]]
    unlikely_roles: FrozenSet[str]
    class_weight: int

    @classmethod
    def from_config(cls, config: ScoringConfig) -> PatternTable:
        return cls(
            positive=_compile("positive", config.positive_patterns),
            negative=_compile("negative", config.negative_patterns),
            negative_exact=frozenset(t.lower() for t in config.negative_exact),
            unlikely=_compile("unlikely", config.unlikely_patterns),
            maybe=_compile("maybe-candidate", config.maybe_patterns),
            byline=_compile("byline", config.byline_patterns),
            unlikely_roles=frozenset(r.lower() for r in config.unlikely_roles),
            class_weight=config.class_weight,
        )

    def _is_negative(self, tokens: List[str]) -> bool:
        for token in tokens:
            if token in self.negative_exact:
                return True
            if self.negative is not None and self.negative.search(token):
                return True
        return False

    def _is_positive(self, tokens: List[str]) -> bool:
        return self.positive is not None and any(self.positive.search(t) for t in tokens)

    def class_weight_of(self, node: Tag) -> int:
        """Positive/negative weight from the class and id attributes, each counted once."""
        weight = 0
        for attr in ("class", "id"):
            tokens = str(node.get(attr) or "").lower().split()
            if not tokens:
                continue
            if self._is_negative(tokens):
                weight -= self.class_weight
            if self._is_positive(tokens):
                weight += self.class_weight
        return weight

    def is_unlikely(self, node: Tag) -> bool:
        if self.unlikely is None:
            return False
        match_string = " ".join(class_tokens(node))
        if not match_string or not self.unlikely.search(match_string):
            return False
        return self.maybe is None or not self.maybe.search(match_string)

    def has_unlikely_role(self, node: Tag) -> bool:
        role = node.get("role")
        return bool(role) and str(role).strip().lower() in self.unlikely_roles

    def looks_like_byline(self, node: Tag) -> bool:
        if str(node.get("rel") or "").lower() == "author":
            return True
        if "author" in str(node.get("itemprop") or "").lower().split():
            return True
        match_string = " ".join(class_tokens(node))
        return bool(match_string) and self.byline is not None and bool(self.byline.search(match_string))


def is_probably_visible(node: Tag) -> bool:
    style = str(node.get("style") or "")
    if style and (DISPLAY_NONE_RE.search(style) or VISIBILITY_HIDDEN_RE.search(style)):
        return False
    if node.has_attr("hidden"):
        return False
    aria_hidden = str(node.get("aria-hidden") or "").strip().lower()
    if aria_hidden == "true" and "fallback-image" not in str(node.get("class") or ""):
        return False
    return True
