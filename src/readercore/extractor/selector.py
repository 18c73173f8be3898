"""
Top candidate selection.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import structlog
from bs4 import Tag

from readercore.config import ResolvedOptions, ScoringConfig
from readercore.dom.tree import DocumentTree, TextMetrics, element_children

from .models import Candidate, ExtractionFlags, Selection
from .scorer import NodeScorer, ScoreTable

logger = structlog.get_logger(__name__)


class CandidateSelector:
    def __init__(self, scorer: NodeScorer, config: ScoringConfig) -> None:
        self.scorer = scorer
        self.config = config

    def select(
        self,
        tree: DocumentTree,
        table: ScoreTable,
        options: ResolvedOptions,
        flags: ExtractionFlags,
    ) -> Selection:
        body = tree.body
        metrics = self._metrics(table)
        self._scale_by_link_density(table, metrics)

        ranked = sorted(table.candidates(), key=lambda c: (-c.score, c.position))
        top_candidates = ranked[: options.nb_top_candidates]

        if not top_candidates or top_candidates[0].score <= 0:
            logger.debug("No positive candidate, using document body")
            return Selection(top=body, candidates=top_candidates, fallback=True)

        top = top_candidates[0]
        if top.node is body:
            child = self._best_body_child(body, table, flags, metrics)
            if child is None:
                return Selection(top=body, candidates=top_candidates, fallback=True)
            return Selection(top=child, candidates=top_candidates)

        node = self._promote_common_ancestor(body, top, top_candidates[1:], table)
        if table.get(node) is None:
            table.set(node, self.scorer.initial_score(node, flags))
        node = self._climb(body, node, table)
        if table.get(node) is None:
            table.set(node, self.scorer.initial_score(node, flags))
        return Selection(top=node, candidates=top_candidates)

    def _metrics(self, table: ScoreTable) -> TextMetrics:
        if table.metrics is None:
            table.metrics = TextMetrics.for_index(table.index, self.config.hash_link_weight)
        return table.metrics

    @staticmethod
    def _scale_by_link_density(table: ScoreTable, metrics: TextMetrics) -> None:
        nodes = table.index.nodes
        for pos, score in enumerate(table.scores):
            if score is not None:
                table.scores[pos] = score * (1 - metrics.link_density(nodes[pos]))

    def _best_body_child(
        self, body: Tag, table: ScoreTable, flags: ExtractionFlags, metrics: TextMetrics
    ) -> Optional[Tag]:
        """Re-score only the direct children of <body> and pick the strongest."""
        index = table.index
        totals: Dict[int, float] = {}
        for pos, contribution in table.contributions.items():
            child_pos = index.child_of_root(pos)
            if child_pos is not None:
                totals[child_pos] = totals.get(child_pos, 0.0) + contribution

        best: Optional[Tag] = None
        best_score = 0.0
        for child in element_children(body):
            pos = index.position(child)
            if pos is None:
                continue
            score = self.scorer.initial_score(child, flags) + totals.get(pos, 0.0)
            score *= 1 - metrics.link_density(child)
            if score > best_score:
                best, best_score = child, score
        if best is not None:
            table.set(best, best_score)
            logger.debug("Selected body child", tag=best.name, score=best_score)
        return best

    def _promote_common_ancestor(
        self,
        body: Tag,
        top: Candidate,
        others: List[Candidate],
        table: ScoreTable,
    ) -> Tag:
        """Prefer an ancestor shared by several near-top candidates."""
        threshold = self.config.alternative_candidate_ratio
        alternatives = [c for c in others if c.score / top.score >= threshold]
        needed = self.config.min_alternative_candidates
        if len(alternatives) < needed:
            return top.node

        index = table.index
        parent = top.node.parent
        while parent is not None and parent is not body:
            parent_pos = index.position(parent)
            if parent_pos is None:
                break
            shared = sum(1 for alt in alternatives if index.is_ancestor(parent_pos, alt.position))
            if shared >= needed:
                return parent
            parent = parent.parent
        return top.node

    @staticmethod
    def _climb(body: Tag, node: Tag, table: ScoreTable) -> Tag:
        """Walk up while parents score comparably, then through single-child wrappers."""
        last_score = table.get(node) or 0.0
        threshold = last_score / 3
        parent = node.parent
        while parent is not None and parent is not body:
            parent_score = table.get(parent)
            if parent_score is None:
                parent = parent.parent
                continue
            if parent_score < threshold:
                break
            if parent_score > last_score:
                node = parent
                break
            last_score = parent_score
            parent = parent.parent

        parent = node.parent
        while parent is not None and parent is not body and len(element_children(parent)) == 1:
            node = parent
            parent = node.parent
        return node
