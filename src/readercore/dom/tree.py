"""
Thin read/mutate layer over a BeautifulSoup document.

All walks here are iterative so documents of any nesting depth can be
processed without touching the interpreter recursion limit. Elements are
tracked by identity: BeautifulSoup defines ``==`` structurally, so two
distinct but identical paragraphs would compare equal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, ParserRejectedMarkup, Tag
from bs4.element import CData, Doctype, PreformattedString

from readercore.exceptions import HtmlParseError

PARSER = "html.parser"

# Elements whose presence makes a <div> a block container rather than a paragraph.
DIV_TO_P_ELEMS = frozenset({"blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"})

PHRASING_ELEMS = frozenset(
    {
        "abbr", "audio", "b", "bdo", "br", "button", "cite", "code", "data",
        "datalist", "dfn", "em", "embed", "i", "img", "input", "kbd", "label",
        "mark", "math", "meter", "noscript", "object", "output", "progress", "q",
        "ruby", "samp", "script", "select", "small", "span", "strong", "sub",
        "sup", "textarea", "time", "var", "wbr",
    }
)

# Phrasing only when every child is phrasing too.
PHRASING_WRAPPERS = frozenset({"a", "del", "ins"})

MEDIA_TAGS = frozenset(
    {"img", "picture", "video", "audio", "source", "track", "svg", "math", "canvas", "figure", "embed", "object"}
)

_WHITESPACE_RE = re.compile(r"\s+")


def is_text(node) -> bool:
    """True for character data, False for elements, comments and declarations."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def normalize_space(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def inner_text(node, normalize: bool = True) -> str:
    if isinstance(node, Tag):
        text = node.get_text()
    else:
        text = str(node)
    return normalize_space(text) if normalize else text.strip()


def direct_text(node: Tag) -> str:
    """Text of the immediate text-node children only."""
    return normalize_space("".join(str(c) for c in node.contents if is_text(c)))


def element_children(node: Tag) -> List[Tag]:
    return [c for c in node.contents if isinstance(c, Tag)]


def first_element_child(node: Tag) -> Optional[Tag]:
    for child in node.contents:
        if isinstance(child, Tag):
            return child
    return None


def next_element_sibling(node) -> Optional[Tag]:
    sibling = node.next_sibling
    while sibling is not None and not isinstance(sibling, Tag):
        sibling = sibling.next_sibling
    return sibling


def next_node(node: Tag, root: Tag, skip_children: bool = False) -> Optional[Tag]:
    """Next element after ``node`` in preorder, never leaving ``root``."""
    if not skip_children:
        child = first_element_child(node)
        if child is not None:
            return child
    while node is not None and node is not root:
        sibling = next_element_sibling(node)
        if sibling is not None:
            return sibling
        node = node.parent
    return None


def iter_elements(root: Tag) -> Iterator[Tag]:
    """Preorder over ``root`` and its element descendants."""
    yield root
    for descendant in root.descendants:
        if isinstance(descendant, Tag):
            yield descendant


def has_ancestor_tag(node, tag: str, max_depth: int = -1) -> bool:
    depth = 0
    parent = node.parent
    while parent is not None:
        if 0 < max_depth < depth:
            return False
        if parent.name == tag:
            return True
        parent = parent.parent
        depth += 1
    return False


def is_whitespace(node) -> bool:
    if is_text(node):
        return not str(node).strip()
    return isinstance(node, Tag) and node.name == "br"


def is_phrasing_content(node) -> bool:
    if is_text(node):
        return True
    if not isinstance(node, Tag):
        return False
    stack = [node]
    while stack:
        current = stack.pop()
        if current.name in PHRASING_ELEMS:
            continue
        if current.name not in PHRASING_WRAPPERS:
            return False
        stack.extend(child for child in current.contents if isinstance(child, Tag))
    return True


def has_child_block_element(node: Tag) -> bool:
    return node.find(sorted(DIV_TO_P_ELEMS)) is not None


def has_single_tag_inside_element(node: Tag, tag: str) -> bool:
    children = element_children(node)
    if len(children) != 1 or children[0].name != tag:
        return False
    return not any(is_text(c) and str(c).strip() for c in node.contents)


def has_text(node: Tag) -> bool:
    """True once any non-whitespace string is found; stops at the first one."""
    return any(string.strip() for string in node.strings)


def is_element_without_content(node: Tag) -> bool:
    if has_text(node):
        return False
    children = element_children(node)
    return all(c.name in ("br", "hr") for c in children)


def has_media(node: Tag) -> bool:
    return node.name in MEDIA_TAGS or node.find(sorted(MEDIA_TAGS)) is not None


def link_density(node: Tag, hash_link_weight: float = 0.3) -> float:
    """Share of the node's text that sits inside anchors; fragment links count less."""
    text_length = len(inner_text(node))
    if text_length == 0:
        return 0.0
    link_length = 0.0
    for anchor in node.find_all("a"):
        href = anchor.get("href") or ""
        weight = hash_link_weight if href.startswith("#") else 1.0
        link_length += len(inner_text(anchor)) * weight
    return min(link_length / text_length, 1.0)


_TEXT_TYPES = (NavigableString, CData)


@dataclass(frozen=True)
class TextSpan:
    """Length bookkeeping for a run of text as ``inner_text`` would normalize it.

    ``chars`` counts non-whitespace characters and ``gaps`` the whitespace runs
    between them, so the normalized length is ``chars + gaps``. ``lead`` and
    ``trail`` record whitespace at either edge (any whitespace at all when the
    span has no characters), which is what decides whether two joined spans
    gain a gap.
    """

    chars: int = 0
    gaps: int = 0
    lead: bool = False
    trail: bool = False
    commas: bool = False

    @property
    def length(self) -> int:
        return self.chars + self.gaps

    @classmethod
    def of(cls, text: str, comma_re: Optional[re.Pattern] = None) -> TextSpan:
        stripped = text.strip()
        if not stripped:
            return cls(lead=bool(text), trail=bool(text))
        runs = _WHITESPACE_RE.findall(stripped)
        return cls(
            chars=len(stripped) - sum(len(run) for run in runs),
            gaps=len(runs),
            lead=text[0].isspace(),
            trail=text[-1].isspace(),
            commas=bool(comma_re and comma_re.search(stripped)),
        )

    def join(self, other: TextSpan) -> TextSpan:
        commas = self.commas or other.commas
        if not self.chars:
            trail = other.trail if other.chars else self.trail or other.trail
            return TextSpan(other.chars, other.gaps, self.lead or other.lead, trail, commas)
        if not other.chars:
            return TextSpan(self.chars, self.gaps, self.lead, self.trail or other.lead, commas)
        gap = 1 if self.trail or other.lead else 0
        return TextSpan(self.chars + other.chars, self.gaps + other.gaps + gap, self.lead, other.trail, commas)


EMPTY_SPAN = TextSpan()


class TextMetrics:
    """Text and anchor-text lengths of elements, each computed once from its children.

    Elements must be measured children first (reversed preorder does that);
    a node's figures then cost one pass over its own ``contents``. The numbers
    match ``len(inner_text(node))`` and ``link_density(node)`` for the tree as
    it was when the node was measured.
    """

    def __init__(self, hash_link_weight: float = 0.3, comma_re: Optional[re.Pattern] = None) -> None:
        self.hash_link_weight = hash_link_weight
        self.comma_re = comma_re
        # id -> (node, text span, anchor chars, weighted anchor chars)
        self._entries: Dict[int, Tuple[Tag, TextSpan, int, float]] = {}

    @classmethod
    def for_index(cls, index: NodeIndex, hash_link_weight: float = 0.3, comma_re=None) -> TextMetrics:
        metrics = cls(hash_link_weight, comma_re)
        for node in reversed(index.nodes):
            metrics.measure(node)
        return metrics

    def measure(self, node: Tag) -> TextSpan:
        """(Re)compute ``node`` from its current children."""
        span = EMPTY_SPAN
        link_chars = 0
        weighted = 0.0
        for child in node.contents:
            if isinstance(child, Tag):
                child_span, child_links, child_weighted = self._lookup(child)
                span = span.join(child_span)
                link_chars += child_links
                weighted += child_weighted
                if child.name == "a":
                    href = child.get("href") or ""
                    link_chars += child_span.length
                    weighted += child_span.length * (self.hash_link_weight if href.startswith("#") else 1.0)
            elif type(child) in _TEXT_TYPES:
                span = span.join(TextSpan.of(str(child), self.comma_re))
        self._entries[id(node)] = (node, span, link_chars, weighted)
        return span

    def _lookup(self, node: Tag) -> Tuple[TextSpan, int, float]:
        entry = self._entries.get(id(node))
        if entry is None or entry[0] is not node:
            for descendant in reversed(list(iter_elements(node))):
                self.measure(descendant)
            entry = self._entries[id(node)]
        return entry[1], entry[2], entry[3]

    def span(self, node: Tag) -> TextSpan:
        return self._lookup(node)[0]

    def text_length(self, node: Tag) -> int:
        return self._lookup(node)[0].length

    def link_length(self, node: Tag) -> int:
        """Characters inside anchor descendants, unweighted."""
        return self._lookup(node)[1]

    def link_density(self, node: Tag) -> float:
        span, _, weighted = self._lookup(node)
        if span.length == 0:
            return 0.0
        return min(weighted / span.length, 1.0)


def merge_adjacent_strings(root: Tag) -> bool:
    """Join runs of sibling text nodes into one. Returns True if anything merged."""
    changed = False
    for tag in list(iter_elements(root)):
        contents = tag.contents
        i = 0
        while i < len(contents) - 1:
            current, following = contents[i], contents[i + 1]
            if is_text(current) and is_text(following) and type(current) is type(following):
                merged = type(current)(str(current) + str(following))
                following.extract()
                current.replace_with(merged)
                changed = True
                continue
            i += 1
    return changed


class DocumentTree:
    """A parsed HTML document plus the handful of lookups the pipeline needs."""

    def __init__(self, soup: BeautifulSoup) -> None:
        self.soup = soup

    @classmethod
    def parse(cls, html: str, max_elems: int = 0) -> DocumentTree:
        try:
            soup = BeautifulSoup(html, PARSER, multi_valued_attributes=None)
        except ParserRejectedMarkup as e:
            raise HtmlParseError(str(e)) from e

        count = 0
        for descendant in soup.descendants:
            if not isinstance(descendant, Tag):
                continue
            count += 1
            if max_elems and count > max_elems:
                raise HtmlParseError(f"Aborting parsing document; more than {max_elems} elements found")
        if count == 0:
            raise HtmlParseError("document contains no elements")
        return cls(soup)

    @property
    def body(self) -> Tag:
        for candidate in (self.soup.body, self.soup.html):
            if candidate is not None:
                return candidate
        return self.soup

    @property
    def html(self) -> Optional[Tag]:
        return self.soup.html

    @property
    def title(self) -> str:
        tag = self.soup.find("title")
        return inner_text(tag) if tag is not None else ""

    @property
    def base_href(self) -> Optional[str]:
        tag = self.soup.find("base", href=True)
        if tag is None:
            return None
        return tag["href"].strip() or None

    def new_tag(self, name: str) -> Tag:
        return self.soup.new_tag(name)

    def strip_markup_declarations(self) -> int:
        """Remove comments, CDATA and processing instructions; the doctype stays."""
        doomed = [
            d for d in self.soup.descendants if isinstance(d, PreformattedString) and not isinstance(d, Doctype)
        ]
        for node in doomed:
            node.extract()
        return len(doomed)


class NodeIndex:
    """Document-order arena of the elements under ``root``.

    ``nodes[i]`` is the element at preorder position ``i`` and ``parents[i]``
    the position of its parent (``None`` for the root), so ancestor walks are
    integer hops and scores can live in a flat list addressed the same way.
    """

    def __init__(self, root: Tag) -> None:
        self.root = root
        self.nodes: List[Tag] = list(iter_elements(root))
        self._positions: Dict[int, int] = {id(node): i for i, node in enumerate(self.nodes)}
        self.parents: List[Optional[int]] = [None]
        for node in self.nodes[1:]:
            self.parents.append(self._positions.get(id(node.parent)))
        self._root_children: Optional[List[Optional[int]]] = None

    def __len__(self) -> int:
        return len(self.nodes)

    def position(self, node) -> Optional[int]:
        pos = self._positions.get(id(node))
        if pos is None or self.nodes[pos] is not node:
            return None
        return pos

    def parent(self, pos: int) -> Optional[int]:
        return self.parents[pos]

    def ancestors(self, pos: int, max_depth: int = 0) -> List[int]:
        result: List[int] = []
        current = self.parents[pos]
        while current is not None:
            result.append(current)
            if max_depth and len(result) >= max_depth:
                break
            current = self.parents[current]
        return result

    def is_ancestor(self, ancestor: int, descendant: int) -> bool:
        current = self.parents[descendant]
        while current is not None:
            if current == ancestor:
                return True
            if current < ancestor:
                return False
            current = self.parents[current]
        return False

    def child_of_root(self, pos: int) -> Optional[int]:
        """The root's child on the path to ``pos``."""
        if self._root_children is None:
            # Parents precede children in preorder, so one forward pass fills the table.
            table: List[Optional[int]] = [None] * len(self.nodes)
            for i in range(1, len(self.nodes)):
                parent = self.parents[i]
                if parent == 0:
                    table[i] = i
                elif parent is not None:
                    table[i] = table[parent]
            self._root_children = table
        return self._root_children[pos]
