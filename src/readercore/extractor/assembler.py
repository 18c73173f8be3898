"""
Sibling merge: builds the content container around the top candidate.
"""

from __future__ import annotations

from typing import Optional

import structlog
from bs4 import Tag

from readercore.config import ResolvedOptions, ScoringConfig
from readercore.dom.tree import DocumentTree, element_children, inner_text, link_density

from .models import AssembledContent, Direction, Selection
from .patterns import SENTENCE_END_RE
from .scorer import ScoreTable

logger = structlog.get_logger(__name__)

KEEP_TAG_NAMES = frozenset({"div", "article", "section", "p"})


def detect_direction(top: Tag) -> Optional[Direction]:
    """First ``dir`` on the parent, the node itself or any further ancestor."""
    chain = []
    if top.parent is not None:
        chain.append(top.parent)
    chain.append(top)
    ancestor = top.parent.parent if top.parent is not None else None
    while ancestor is not None:
        chain.append(ancestor)
        ancestor = ancestor.parent
    for node in chain:
        value = node.get("dir") if isinstance(node, Tag) else None
        if value:
            return Direction.parse(str(value))
    return None


class ContentAssembler:
    def __init__(self, config: ScoringConfig) -> None:
        self.config = config

    def assemble(
        self,
        tree: DocumentTree,
        selection: Selection,
        table: ScoreTable,
        options: ResolvedOptions,
    ) -> AssembledContent:
        top = selection.top
        direction = detect_direction(top)
        container = tree.new_tag("div")

        if selection.fallback:
            for child in list(top.contents):
                container.append(child.extract())
            return AssembledContent(root=container, top=top, direction=direction)

        top_score = table.get(top) or 0.0
        threshold = max(self.config.sibling_score_floor, top_score * self.config.sibling_score_ratio)
        top_class = str(top.get("class") or "")
        modifier = options.link_density_modifier

        parent = top.parent
        siblings = element_children(parent) if parent is not None else [top]
        admitted = []
        for sibling in siblings:
            if sibling is top or self._admit(sibling, table, top_score, top_class, threshold, modifier):
                admitted.append(sibling)

        for node in admitted:
            if node.name not in KEEP_TAG_NAMES:
                node.name = "div"
            container.append(node.extract())

        logger.debug("Assembled content", siblings=len(admitted), threshold=threshold)
        return AssembledContent(root=container, top=top, direction=direction)

    def _admit(
        self,
        sibling: Tag,
        table: ScoreTable,
        top_score: float,
        top_class: str,
        threshold: float,
        modifier: float,
    ) -> bool:
        density = link_density(sibling, self.config.hash_link_weight)
        if density > self.config.sibling_max_link_density * modifier:
            return False

        score = table.get(sibling)
        if score is not None:
            bonus = 0.0
            if top_class and str(sibling.get("class") or "") == top_class:
                bonus = top_score * self.config.sibling_score_ratio
            if score + bonus >= threshold:
                return True

        if sibling.name != "p":
            return False
        text = inner_text(sibling)
        if len(text) > self.config.prose_min_length:
            return density < self.config.prose_max_link_density * modifier
        return len(text) > 0 and density == 0 and SENTENCE_END_RE.search(text) is not None
