"""
Document clean-up that runs before scoring.
"""

from __future__ import annotations

from typing import List, Optional

import structlog
from bs4 import Tag

from readercore.config import ScoringConfig
from readercore.dom.tree import (
    DocumentTree,
    has_ancestor_tag,
    has_child_block_element,
    has_media,
    has_single_tag_inside_element,
    has_text,
    inner_text,
    is_element_without_content,
    is_phrasing_content,
    is_whitespace,
    link_density,
    merge_adjacent_strings,
    next_node,
)

from .models import ExtractionFlags, PruneResult
from .patterns import PatternTable, is_probably_visible

logger = structlog.get_logger(__name__)

NOISE_TAGS = ["script", "style", "noscript", "template", "title", "meta", "link", "base"]

# Structural tags that never carry article text; dropped when they hold nothing.
EMPTY_DENYLIST = ["form", "nav", "fieldset", "menu"]

EMPTY_CONTAINER_TAGS = frozenset({"div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6"})


def _next_significant(node):
    """Skip whitespace-only text nodes."""
    while node is not None and not isinstance(node, Tag) and not str(node).strip():
        node = node.next_sibling
    return node


def _is_br(node) -> bool:
    return isinstance(node, Tag) and node.name == "br"


class Preprocessor:
    """Removes noise from the whole document and prunes it for one extraction attempt."""

    def __init__(self, patterns: PatternTable, config: ScoringConfig) -> None:
        self.patterns = patterns
        self.config = config
        self.tags_to_score = frozenset(config.tags_to_score)

    # ------------------------------------------------------------------
    # Whole-document normalization
    # ------------------------------------------------------------------

    def prepare(self, tree: DocumentTree) -> None:
        soup = tree.soup
        tree.strip_markup_declarations()

        for tag in soup.find_all(NOISE_TAGS):
            if not tag.decomposed:
                tag.decompose()

        for tag in soup.find_all("font"):
            tag.name = "span"

        self._replace_brs(tree)

        for tag in soup.find_all(EMPTY_DENYLIST):
            if tag.decomposed:
                continue
            if not has_text(tag) and not has_media(tag):
                tag.decompose()

        merge_adjacent_strings(tree.body)

    def _replace_brs(self, tree: DocumentTree) -> None:
        """Turn runs of two or more <br> into paragraphs."""
        for br in tree.body.find_all("br"):
            if br.parent is None:
                continue
            replaced = False
            following = _next_significant(br.next_sibling)
            while _is_br(following):
                replaced = True
                after = following.next_sibling
                following.extract()
                following = _next_significant(after)
            if not replaced:
                continue

            paragraph = tree.new_tag("p")
            br.replace_with(paragraph)
            sibling = paragraph.next_sibling
            while sibling is not None:
                if _is_br(sibling) and _is_br(_next_significant(sibling.next_sibling)):
                    break
                if not is_phrasing_content(sibling):
                    break
                after = sibling.next_sibling
                paragraph.append(sibling.extract())
                sibling = after

            while paragraph.contents and is_whitespace(paragraph.contents[-1]):
                paragraph.contents[-1].extract()
            if paragraph.parent is not None and paragraph.parent.name == "p":
                paragraph.parent.name = "div"

    # ------------------------------------------------------------------
    # Per-attempt pruning
    # ------------------------------------------------------------------

    def prune(self, tree: DocumentTree, flags: ExtractionFlags, capture_byline: bool = False) -> PruneResult:
        """Walk the body once, dropping hidden and unlikely nodes and collecting nodes to score."""
        root = tree.body
        result = PruneResult()
        strip_unlikelys = ExtractionFlags.STRIP_UNLIKELYS in flags
        node: Optional[Tag] = root

        while node is not None:
            if node is not root:
                if not is_probably_visible(node):
                    node = self._remove_and_get_next(node, root)
                    continue

                if capture_byline and result.byline is None and self._is_valid_byline(node):
                    result.byline = inner_text(node)
                    node = self._remove_and_get_next(node, root)
                    continue

                if strip_unlikelys and self._is_unlikely(node):
                    logger.debug("Removing unlikely candidate", tag=node.name, match=node.get("class"))
                    node = self._remove_and_get_next(node, root)
                    continue

                if node.name in EMPTY_CONTAINER_TAGS and is_element_without_content(node):
                    node = self._remove_and_get_next(node, root)
                    continue

            if node.name in self.tags_to_score:
                result.elements_to_score.append(node)

            if node.name == "div" and node is not root:
                node = self._normalize_div(tree, node, result.elements_to_score)

            node = next_node(node, root)

        return result

    def _is_valid_byline(self, node: Tag) -> bool:
        if not self.patterns.looks_like_byline(node):
            return False
        text = inner_text(node)
        return 0 < len(text) < self.config.byline_max_length

    def _is_unlikely(self, node: Tag) -> bool:
        if node.name in ("nav", "aside"):
            return True
        if self.patterns.has_unlikely_role(node):
            return True
        if node.name in ("body", "a"):
            return False
        if not self.patterns.is_unlikely(node):
            return False
        return not has_ancestor_tag(node, "table") and not has_ancestor_tag(node, "code")

    @staticmethod
    def _remove_and_get_next(node: Tag, root: Tag) -> Optional[Tag]:
        following = next_node(node, root, skip_children=True)
        node.extract()
        return following

    def _normalize_div(self, tree: DocumentTree, node: Tag, to_score: List[Tag]) -> Tag:
        self._wrap_phrasing_runs(tree, node)

        if (
            has_single_tag_inside_element(node, "p")
            and link_density(node, self.config.hash_link_weight) < self.config.prose_max_link_density
        ):
            child = next(c for c in node.contents if isinstance(c, Tag))
            node.replace_with(child.extract())
            to_score.append(child)
            return child

        if not has_child_block_element(node):
            node.name = "p"
            to_score.append(node)
        return node

    @staticmethod
    def _wrap_phrasing_runs(tree: DocumentTree, node: Tag) -> None:
        """Gather consecutive phrasing children of a <div> into <p> elements."""
        paragraph: Optional[Tag] = None
        child = node.contents[0] if node.contents else None
        while child is not None:
            following = child.next_sibling
            if is_phrasing_content(child):
                if paragraph is not None:
                    paragraph.append(child.extract())
                elif not is_whitespace(child):
                    paragraph = tree.new_tag("p")
                    child.replace_with(paragraph)
                    paragraph.append(child)
            elif paragraph is not None:
                _trim_trailing_whitespace(paragraph)
                paragraph = None
            child = following
        if paragraph is not None:
            _trim_trailing_whitespace(paragraph)


def _trim_trailing_whitespace(paragraph: Tag) -> None:
    while paragraph.contents and is_whitespace(paragraph.contents[-1]):
        paragraph.contents[-1].extract()
