"""
Structured Data Parser - Schema.org JSON-LD

Reads article metadata from ``application/ld+json`` blocks. Only objects with a
schema.org context and an article-like type are considered; the first block
that yields one wins.
"""

from __future__ import annotations

import html
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

ARTICLE_TYPES = frozenset(
    {
        "Article",
        "AdvertiserContentArticle",
        "NewsArticle",
        "AnalysisNewsArticle",
        "AskPublicNewsArticle",
        "BackgroundNewsArticle",
        "OpinionNewsArticle",
        "ReportageNewsArticle",
        "ReviewNewsArticle",
        "Report",
        "SatiricalArticle",
        "ScholarlyArticle",
        "MedicalScholarlyArticle",
        "SocialMediaPosting",
        "BlogPosting",
        "LiveBlogPosting",
        "DiscussionForumPosting",
        "TechArticle",
        "APIReference",
    }
)

SCHEMA_ORG_RE = re.compile(r"^https?://schema\.org/?$", re.IGNORECASE)
CDATA_RE = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")
_WORD_SPLIT_RE = re.compile(r"\W+")


@dataclass(frozen=True)
class StructuredDataResult:
    """Article fields found in structured data."""

    title: Optional[str] = None
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    published_time: Optional[str] = None
    language: Optional[str] = None


def text_similarity(text_a: str, text_b: str) -> float:
    """Share of ``text_b`` made of tokens that also occur in ``text_a``."""
    tokens_a = [t for t in _WORD_SPLIT_RE.split(text_a.lower()) if t]
    tokens_b = [t for t in _WORD_SPLIT_RE.split(text_b.lower()) if t]
    if not tokens_a or not tokens_b:
        return 0.0
    known = set(tokens_a)
    unique_b = [t for t in tokens_b if t not in known]
    return 1 - len(" ".join(unique_b)) / len(" ".join(tokens_b))


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = html.unescape(value).strip()
    return value or None


def _is_article_type(value: Any) -> bool:
    if isinstance(value, str):
        return value in ARTICLE_TYPES
    if isinstance(value, list):
        return any(isinstance(v, str) and v in ARTICLE_TYPES for v in value)
    return False


def _has_schema_context(obj: Dict[str, Any]) -> bool:
    context = obj.get("@context")
    if isinstance(context, str):
        return bool(SCHEMA_ORG_RE.match(context))
    if isinstance(context, dict):
        vocab = context.get("@vocab")
        return isinstance(vocab, str) and bool(SCHEMA_ORG_RE.match(vocab))
    return False


class SchemaOrgParser:
    """Parser for Schema.org JSON-LD article metadata."""

    @staticmethod
    def parse_json_ld(soup: BeautifulSoup) -> List[Any]:
        """Decoded JSON-LD blocks, skipping those that cannot be decoded."""
        blocks: List[Any] = []
        for script in soup.find_all("script", type="application/ld+json"):
            raw = CDATA_RE.sub("", script.get_text() or script.string or "")
            if not raw.strip():
                continue
            try:
                blocks.append(json.loads(raw))
            except ValueError as e:
                logger.warning("Invalid JSON-LD block skipped: %s", e)
            except RecursionError:
                logger.warning("JSON-LD block nested too deeply, skipped")
        return blocks

    @staticmethod
    def find_article(block: Any) -> Optional[Dict[str, Any]]:
        if isinstance(block, list):
            block = next(
                (item for item in block if isinstance(item, dict) and _is_article_type(item.get("@type"))),
                None,
            )
            if block is None:
                return None
        if not isinstance(block, dict) or not _has_schema_context(block):
            return None
        if "@type" not in block and isinstance(block.get("@graph"), list):
            block = next(
                (item for item in block["@graph"] if isinstance(item, dict) and _is_article_type(item.get("@type"))),
                None,
            )
        if not isinstance(block, dict) or not _is_article_type(block.get("@type")):
            return None
        return block

    @classmethod
    def extract(cls, soup: BeautifulSoup, document_title: str = "") -> StructuredDataResult:
        for block in cls.parse_json_ld(soup):
            article = cls.find_article(block)
            if article is not None:
                return cls.extract_schema_fields(article, document_title)
        return StructuredDataResult()

    @staticmethod
    def extract_schema_fields(article: Dict[str, Any], document_title: str = "") -> StructuredDataResult:
        name = _clean(article.get("name"))
        headline = _clean(article.get("headline"))
        if name and headline and name != headline:
            # Prefer whichever is closer to what the page calls itself.
            name_matches = text_similarity(name, document_title) > 0.75
            headline_matches = text_similarity(headline, document_title) > 0.75
            title = headline if headline_matches and not name_matches else name
        else:
            title = name or headline

        byline = None
        author = article.get("author")
        if isinstance(author, dict):
            byline = _clean(author.get("name"))
        elif isinstance(author, list):
            names = [_clean(a.get("name")) for a in author if isinstance(a, dict)]
            byline = ", ".join(n for n in names if n) or None
        elif isinstance(author, str):
            byline = _clean(author)

        publisher = article.get("publisher")
        site_name = _clean(publisher.get("name")) if isinstance(publisher, dict) else None

        language = article.get("inLanguage")
        if isinstance(language, dict):
            language = language.get("alternateName") or language.get("name")

        return StructuredDataResult(
            title=title,
            byline=byline,
            excerpt=_clean(article.get("description")),
            site_name=site_name,
            published_time=_clean(article.get("datePublished")),
            language=_clean(language),
        )
