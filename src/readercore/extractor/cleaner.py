"""
Sanitizer for the assembled content subtree.

The sanitizer is idempotent: its removal rules only look at text, media and
link density, and the last phase repeats until the subtree stops changing, so
feeding its output back in is a no-op.
"""

from __future__ import annotations

from typing import Optional, Set
from urllib.parse import urljoin, urlparse

import structlog
from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

from readercore.config import ResolvedOptions, ScoringConfig
from readercore.dom.tree import (
    MEDIA_TAGS,
    TextMetrics,
    is_text,
    iter_elements,
    merge_adjacent_strings,
    normalize_space,
)

logger = structlog.get_logger(__name__)

UNWANTED_TAGS = [
    "script",
    "noscript",
    "style",
    "template",
    "iframe",
    "frame",
    "frameset",
    "object",
    "embed",
    "applet",
    "input",
    "textarea",
    "select",
    "option",
    "button",
    "link",
    "meta",
    "base",
    "dialog",
    "aside",
    "footer",
]

# Allowed to stay even when they hold no text.
KEEP_EMPTY_TAGS = frozenset({"br", "hr", "wbr", "td", "th"}) | MEDIA_TAGS

PRESERVE_WHITESPACE_TAGS = ["pre", "code", "textarea"]

LAZY_SRC_ATTRS = ("data-src", "data-original", "data-lazy-src", "data-url")
LAZY_SRCSET_ATTRS = ("data-srcset", "data-lazy-srcset")
URL_MEDIA_TAGS = ["img", "picture", "source", "video", "audio", "track"]


def resolve_base(base_url: Optional[str], document_base: Optional[str]) -> Optional[str]:
    """Combine the caller's URL with a document <base href>, keeping only http(s) results."""
    base = base_url
    if document_base:
        try:
            base = urljoin(base_url or "", document_base)
        except ValueError:
            base = base_url
    if not base:
        return None
    parsed = urlparse(base)
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        return base_url
    return base


def absolutize(base: str, url: str) -> str:
    url = url.strip()
    if not url:
        return url
    try:
        return urljoin(base, url)
    except ValueError:
        return url


class Sanitizer:
    def __init__(self, config: ScoringConfig) -> None:
        self.config = config
        self.allowed_attributes = frozenset(config.allowed_attributes)

    def sanitize(
        self,
        root: Tag,
        options: ResolvedOptions,
        base_url: Optional[str] = None,
        clean_conditionally: bool = True,
        document_base: Optional[str] = None,
    ) -> Tag:
        self._strip_declarations(root)
        self._remove_unwanted(root)
        self._fix_lazy_images(root)
        base = resolve_base(base_url, document_base)
        self._resolve_links(root, base)
        self._strip_attributes(root, options)

        passes = 0
        while True:
            passes += 1
            changed = self._remove_empty(root)
            if clean_conditionally:
                changed |= self._remove_link_dense(root, options)
            changed |= merge_adjacent_strings(root)
            changed |= self._collapse_whitespace(root)
            if not changed:
                break
        logger.debug("Sanitized content", passes=passes)
        return root

    @staticmethod
    def _strip_declarations(root: Tag) -> None:
        doomed = [d for d in root.descendants if isinstance(d, PreformattedString)]
        for node in doomed:
            node.extract()

    @staticmethod
    def _remove_unwanted(root: Tag) -> None:
        for tag in root.find_all(UNWANTED_TAGS):
            tag.extract()

    @staticmethod
    def _fix_lazy_images(root: Tag) -> None:
        for tag in root.find_all(["img", "source"]):
            src = str(tag.get("src") or "").strip()
            if not src or src.startswith("data:"):
                for attr in LAZY_SRC_ATTRS:
                    value = str(tag.get(attr) or "").strip()
                    if value:
                        tag["src"] = value
                        break
            if not tag.get("srcset"):
                for attr in LAZY_SRCSET_ATTRS:
                    value = str(tag.get(attr) or "").strip()
                    if value:
                        tag["srcset"] = value
                        break

    @staticmethod
    def _resolve_links(root: Tag, base: Optional[str]) -> None:
        for anchor in root.find_all("a"):
            href = anchor.get("href")
            if href is None:
                continue
            if str(href).strip().lower().startswith("javascript:"):
                anchor.unwrap()
                continue
            if base and not str(href).startswith("#"):
                anchor["href"] = absolutize(base, str(href))

        if not base:
            return
        for tag in root.find_all(URL_MEDIA_TAGS):
            src = tag.get("src")
            if src:
                tag["src"] = absolutize(base, str(src))
            srcset = tag.get("srcset")
            if srcset:
                tag["srcset"] = ", ".join(
                    " ".join([absolutize(base, parts[0])] + parts[1:])
                    for parts in (item.split() for item in str(srcset).split(","))
                    if parts
                )

    def _strip_attributes(self, root: Tag, options: ResolvedOptions) -> None:
        preserve = frozenset(options.classes_to_preserve)
        for tag in iter_elements(root):
            kept = {}
            for name, value in tag.attrs.items():
                if name == "class":
                    if options.keep_classes:
                        kept[name] = value
                    elif preserve:
                        tokens = [t for t in str(value).split() if t in preserve]
                        if tokens:
                            kept[name] = " ".join(tokens)
                elif name in self.allowed_attributes:
                    kept[name] = value
            tag.attrs = kept

    @staticmethod
    def _protected(root: Tag) -> Set[int]:
        """Ids of everything nested inside media elements."""
        protected: Set[int] = set()
        for media in root.find_all(sorted(MEDIA_TAGS)):
            protected.update(id(d) for d in media.descendants)
        return protected

    def _remove_empty(self, root: Tag) -> bool:
        """Drop elements with no text and no media, children before parents."""
        protected = self._protected(root)
        has_content = {}
        changed = False
        for tag in reversed(root.find_all(True)):
            if id(tag) in protected:
                has_content[id(tag)] = True
                continue
            content = tag.name in MEDIA_TAGS or any(
                has_content.get(id(child), False) if isinstance(child, Tag) else bool(is_text(child) and child.strip())
                for child in tag.contents
            )
            if not content and tag.name not in KEEP_EMPTY_TAGS:
                tag.extract()
                changed = True
                continue
            has_content[id(tag)] = content
        return changed

    def _remove_link_dense(self, root: Tag, options: ResolvedOptions) -> bool:
        """Drop link lists that add next to no text of their own."""
        protected = self._protected(root)
        max_density = self.config.clean_max_link_density * options.link_density_modifier
        metrics = TextMetrics(self.config.hash_link_weight)
        changed = False
        # Children come before parents, so each tag is measured after its surviving children.
        for tag in reversed(root.find_all(True)):
            length = metrics.measure(tag).length
            if tag.name == "a" or tag.name in KEEP_EMPTY_TAGS or id(tag) in protected:
                continue
            if not length:
                continue
            if metrics.link_density(tag) <= max_density:
                continue
            if length - metrics.link_length(tag) < self.config.clean_min_text_length:
                tag.extract()
                changed = True
        return changed

    @staticmethod
    def _collapse_whitespace(root: Tag) -> bool:
        preserved: Set[int] = set()
        for tag in root.find_all(PRESERVE_WHITESPACE_TAGS):
            preserved.update(id(d) for d in tag.descendants)

        changed = False
        for node in list(root.descendants):
            if not is_text(node) or id(node) in preserved:
                continue
            text = str(node)
            collapsed = _collapse(text)
            if collapsed != text:
                node.replace_with(NavigableString(collapsed))
                changed = True
        return changed


def _collapse(text: str) -> str:
    if not text.strip():
        return " "
    stripped = normalize_space(text)
    prefix = " " if text[:1].isspace() else ""
    suffix = " " if text[-1:].isspace() else ""
    return f"{prefix}{stripped}{suffix}"
