"""
Metadata Extractor - <meta> tags, structured data and the document title

Runs on the unmodified document, before any pruning, and merges the sources in
precedence order: structured data, then Open Graph, then Twitter/Dublin Core
and standard ``name=`` meta, then values inferred from the document itself.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from readercore.dom.tree import DocumentTree, inner_text, normalize_space

from .structured_data_parser import SchemaOrgParser, StructuredDataResult

logger = logging.getLogger(__name__)

PROPERTY_RE = re.compile(
    r"\s*(article|dc|dcterm|og|twitter)\s*:\s*(author|creator|description|published_time|title|site_name|locale)\s*",
    re.IGNORECASE,
)
NAME_RE = re.compile(
    r"^\s*(?:(dc|dcterm|og|twitter|parsely|weibo:(article|webpage))\s*[-.:]\s*)?"
    r"(author|creator|pub-date|description|title|site_name)\s*$",
    re.IGNORECASE,
)
TITLE_SEPARATORS_RE = re.compile(r" [|\-\\/>»] ")
HIERARCHICAL_SEPARATORS_RE = re.compile(r" [\\/>»] ")
LEADING_SECTION_RE = re.compile(r"^[^|\-\\/>»]*[|\-\\/>»]")
SEPARATOR_RUN_RE = re.compile(r"[|\-\\/>»]+")
URL_RE = re.compile(r"^https?://", re.IGNORECASE)

TITLE_KEYS = [
    "og:title",
    "twitter:title",
    "dc:title",
    "dcterm:title",
    "weibo:article:title",
    "weibo:webpage:title",
    "title",
    "parsely-title",
]
BYLINE_KEYS = ["dc:creator", "dcterm:creator", "author", "parsely-author"]
EXCERPT_KEYS = [
    "og:description",
    "twitter:description",
    "dc:description",
    "dcterm:description",
    "weibo:article:description",
    "weibo:webpage:description",
    "description",
]
PUBLISHED_KEYS = ["article:published_time", "parsely-pub-date", "pub-date"]


@dataclass(frozen=True)
class ArticleMetadata:
    """Metadata inferred from <meta> tags, structured data and the document title."""

    title: Optional[str] = None
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    language: Optional[str] = None
    published_time: Optional[str] = None


def _word_count(text: str) -> int:
    return len(text.split())


def _first(values: Dict[str, str], keys: List[str]) -> Optional[str]:
    for key in keys:
        value = values.get(key)
        if value:
            return value
    return None


class MetadataExtractor:
    """Collects article metadata from the document head and structured data."""

    def extract(self, tree: DocumentTree, disable_jsonld: bool = False) -> ArticleMetadata:
        soup = tree.soup
        values = self.collect_meta(soup)
        document_title = self.document_title(tree)

        structured = StructuredDataResult()
        if not disable_jsonld:
            structured = SchemaOrgParser.extract(soup, document_title)

        article_author = values.get("article:author")
        if article_author and URL_RE.match(article_author):
            article_author = None

        metadata = ArticleMetadata(
            title=structured.title or _first(values, TITLE_KEYS) or document_title or None,
            byline=structured.byline or article_author or _first(values, BYLINE_KEYS),
            excerpt=structured.excerpt or _first(values, EXCERPT_KEYS),
            site_name=structured.site_name or values.get("og:site_name"),
            language=structured.language or self.language(soup, values),
            published_time=structured.published_time or _first(values, PUBLISHED_KEYS),
        )
        logger.debug("Extracted metadata: %s", metadata)
        return metadata

    @staticmethod
    def collect_meta(soup: BeautifulSoup) -> Dict[str, str]:
        """Normalized meta name to content; the first non-empty value for a name wins."""
        values: Dict[str, str] = {}
        for meta in soup.find_all("meta"):
            content = html.unescape(str(meta.get("content") or "")).strip()
            if not content:
                continue

            matched = False
            prop = meta.get("property")
            if prop:
                for match in PROPERTY_RE.finditer(str(prop)):
                    matched = True
                    key = re.sub(r"\s", "", match.group(0)).lower()
                    values.setdefault(key, content)

            name = meta.get("name")
            if not matched and name and NAME_RE.match(str(name)):
                key = re.sub(r"\s", "", str(name)).lower().replace(".", ":")
                values.setdefault(key, content)

            http_equiv = str(meta.get("http-equiv") or "").strip().lower()
            if http_equiv == "content-language":
                values.setdefault("content-language", content)
            elif str(name or "").strip().lower() == "language":
                values.setdefault("language", content)
        return values

    @staticmethod
    def language(soup: BeautifulSoup, values: Dict[str, str]) -> Optional[str]:
        locale = values.get("og:locale")
        if locale:
            return locale.replace("_", "-")
        for key in ("content-language", "language"):
            if values.get(key):
                return values[key].split(",")[0].strip() or None
        root = soup.find("html")
        if root is not None and root.get("lang"):
            return str(root["lang"]).strip() or None
        return None

    @staticmethod
    def document_title(tree: DocumentTree) -> str:
        """The <title> text with site-name decorations removed where that looks safe."""
        original = html.unescape(tree.title).strip()
        if not original:
            return ""

        title = original
        had_hierarchical_separators = False
        separators = list(TITLE_SEPARATORS_RE.finditer(title))
        if separators:
            had_hierarchical_separators = bool(HIERARCHICAL_SEPARATORS_RE.search(title))
            title = original[: separators[-1].start()]
            if _word_count(title) < 3:
                title = LEADING_SECTION_RE.sub("", original, count=1)
        elif ": " in title:
            headings = [inner_text(h) for h in tree.soup.find_all(["h1", "h2"])]
            if title.strip() not in headings:
                title = original[original.rfind(":") + 1 :]
                if _word_count(title) < 3:
                    title = original[original.find(":") + 1 :]
                elif _word_count(original[: original.find(":")]) > 5:
                    title = original
        elif len(title) > 150 or len(title) < 15:
            h1s = tree.soup.find_all("h1")
            if len(h1s) == 1:
                title = inner_text(h1s[0])

        title = normalize_space(title)
        words = _word_count(title)
        if words <= 4 and (
            not had_hierarchical_separators
            or words != _word_count(SEPARATOR_RUN_RE.sub("", original)) - 1
        ):
            title = original
        return title
