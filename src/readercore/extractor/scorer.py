"""
Content scoring of paragraph-like nodes and their container ancestors.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from bs4 import Tag

from readercore.config import ScoringConfig
from readercore.dom.tree import DocumentTree, NodeIndex, TextMetrics, direct_text, inner_text

from .models import Candidate, ExtractionFlags
from .patterns import COMMAS_RE, PatternTable


class ScoreTable:
    """Scores kept in a flat list parallel to ``NodeIndex.nodes``."""

    def __init__(self, index: NodeIndex, metrics: Optional[TextMetrics] = None) -> None:
        self.index = index
        self.metrics = metrics
        self.scores: List[Optional[float]] = [None] * len(index)
        # Own contribution of each scored paragraph-like node, by position.
        self.contributions: Dict[int, float] = {}

    def get(self, node) -> Optional[float]:
        pos = self.index.position(node)
        return None if pos is None else self.scores[pos]

    def set(self, node, value: float) -> None:
        pos = self.index.position(node)
        if pos is None:
            raise KeyError("node is not part of the scored tree")
        self.scores[pos] = value

    def is_scored(self, node) -> bool:
        return self.get(node) is not None

    def candidates(self) -> List[Candidate]:
        return [
            Candidate(self.index.nodes[pos], score, pos)
            for pos, score in enumerate(self.scores)
            if score is not None
        ]


class NodeScorer:
    def __init__(self, patterns: PatternTable, config: ScoringConfig) -> None:
        self.patterns = patterns
        self.config = config
        self.container_tags = frozenset(config.container_tags)

    def initial_score(self, node: Tag, flags: ExtractionFlags) -> float:
        """Tag weight plus, when enabled, the class/id weight."""
        score = float(self.config.tag_weights.get(node.name, 0))
        if ExtractionFlags.WEIGHT_CLASSES in flags:
            score += self.patterns.class_weight_of(node)
        return score

    def content_score(self, node: Tag, metrics: Optional[TextMetrics] = None) -> Optional[float]:
        """Score a node contributes upward, or None when it is too short to count."""
        if metrics is not None:
            span = metrics.span(node)
            length, commas = span.length, span.commas
        else:
            text = inner_text(node)
            length, commas = len(text), bool(COMMAS_RE.search(text))
        if length < self.config.min_text_length:
            return None
        score = 1.0
        if commas:
            score += 1
        score += min(len(direct_text(node)) // self.config.length_bonus_chars, self.config.max_length_bonus)
        return score

    def _divider(self, level: int) -> float:
        dividers = self.config.level_dividers
        return dividers[min(level, len(dividers)) - 1]

    def score(self, tree: DocumentTree, elements: Iterable[Tag], flags: ExtractionFlags) -> ScoreTable:
        index = NodeIndex(tree.body)
        metrics = TextMetrics.for_index(index, self.config.hash_link_weight, COMMAS_RE)
        table = ScoreTable(index, metrics)
        scores = table.scores

        for element in elements:
            pos = index.position(element)
            if pos is None:
                continue
            contribution = self.content_score(element, metrics)
            if contribution is None:
                continue
            table.contributions[pos] = contribution

            if scores[pos] is None:
                scores[pos] = self.initial_score(element, flags)
            scores[pos] += contribution

            level = 0
            current = index.parent(pos)
            while current is not None and level < self.config.max_ancestor_depth:
                level += 1
                ancestor = index.nodes[current]
                if current == 0 or ancestor.name in self.container_tags:
                    if scores[current] is None:
                        scores[current] = self.initial_score(ancestor, flags)
                    scores[current] += contribution / self._divider(level)
                current = index.parent(current)

        return table
