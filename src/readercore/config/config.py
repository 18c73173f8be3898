"""
Configuration management for readercore using Pydantic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Scoring Tables ---

DEFAULT_POSITIVE_PATTERNS: List[str] = [
    "article",
    "body",
    "content",
    "entry",
    "hentry",
    "h-entry",
    "main",
    "page",
    "pagination",
    "post",
    "text",
    "blog",
    "story",
]

DEFAULT_NEGATIVE_PATTERNS: List[str] = [
    "-ad-",
    "hidden",
    "banner",
    "combx",
    "comment",
    "com-",
    "contact",
    "foot",
    "footer",
    "footnote",
    "gdpr",
    "masthead",
    "media",
    "meta",
    "outbrain",
    "promo",
    "related",
    "scroll",
    "share",
    "shoutbox",
    "sidebar",
    "skyscraper",
    "sponsor",
    "shopping",
    "tags",
    "widget",
    "popup",
]

# Short tokens that only count as negative when they are a whole class/id token.
DEFAULT_NEGATIVE_EXACT: List[str] = ["ad", "ads", "nav", "hid"]

DEFAULT_UNLIKELY_PATTERNS: List[str] = [
    "-ad-",
    "ai2html",
    "banner",
    "breadcrumbs",
    "combx",
    "comment",
    "community",
    "cover-wrap",
    "disqus",
    "extra",
    "footer",
    "gdpr",
    "header",
    "legends",
    "menu",
    "related",
    "remark",
    "replies",
    "rss",
    "shoutbox",
    "sidebar",
    "skyscraper",
    "social",
    "sponsor",
    "supplemental",
    "ad-break",
    "agegate",
    "pagination",
    "pager",
    "popup",
    "yom-remote",
]

DEFAULT_MAYBE_PATTERNS: List[str] = ["and", "article", "body", "column", "content", "main", "shadow"]

DEFAULT_BYLINE_PATTERNS: List[str] = ["byline", "author", "dateline", "writtenby", "p-author"]

DEFAULT_UNLIKELY_ROLES: List[str] = [
    "menu",
    "menubar",
    "complementary",
    "navigation",
    "alert",
    "alertdialog",
    "dialog",
]

DEFAULT_TAG_WEIGHTS: Dict[str, int] = {
    "div": 5,
    "pre": 3,
    "td": 3,
    "blockquote": 3,
    "address": -3,
    "ol": -3,
    "ul": -3,
    "dl": -3,
    "dd": -3,
    "dt": -3,
    "li": -3,
    "form": -3,
    "h1": -5,
    "h2": -5,
    "h3": -5,
    "h4": -5,
    "h5": -5,
    "h6": -5,
    "th": -5,
}

DEFAULT_CONTAINER_TAGS: List[str] = [
    "article",
    "blockquote",
    "body",
    "dd",
    "div",
    "dl",
    "form",
    "li",
    "main",
    "ol",
    "pre",
    "section",
    "table",
    "tbody",
    "td",
    "th",
    "tr",
    "ul",
]

DEFAULT_TAGS_TO_SCORE: List[str] = ["section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre", "blockquote"]

DEFAULT_ALLOWED_ATTRIBUTES: List[str] = [
    "href",
    "src",
    "srcset",
    "alt",
    "title",
    "colspan",
    "rowspan",
    "datetime",
    "cite",
]


# --- Nested Configuration Models ---


class ScoringConfig(BaseModel):
    """Calibratable constants of the extraction heuristics."""

    min_text_length: int = Field(default=25, ge=0, description="Minimum inner text length for a node to be scored.")
    max_ancestor_depth: int = Field(default=5, ge=1, description="How many scorable ancestors receive a share.")
    level_dividers: List[float] = Field(
        default_factory=lambda: [1.0, 2.0, 3.0],
        description="Divider per ancestor level; the last entry is reused for deeper levels.",
    )
    length_bonus_chars: int = Field(default=100, gt=0, description="Characters of direct text per bonus point.")
    max_length_bonus: int = Field(default=3, ge=0)
    class_weight: int = Field(default=25, description="Weight applied per matching class or id.")
    tag_weights: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_TAG_WEIGHTS))
    container_tags: List[str] = Field(default_factory=lambda: list(DEFAULT_CONTAINER_TAGS))
    tags_to_score: List[str] = Field(default_factory=lambda: list(DEFAULT_TAGS_TO_SCORE))

    positive_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_POSITIVE_PATTERNS))
    negative_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_NEGATIVE_PATTERNS))
    negative_exact: List[str] = Field(default_factory=lambda: list(DEFAULT_NEGATIVE_EXACT))
    unlikely_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_UNLIKELY_PATTERNS))
    maybe_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_MAYBE_PATTERNS))
    byline_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_BYLINE_PATTERNS))
    unlikely_roles: List[str] = Field(default_factory=lambda: list(DEFAULT_UNLIKELY_ROLES))

    alternative_candidate_ratio: float = Field(default=0.75, gt=0, le=1)
    min_alternative_candidates: int = Field(default=3, ge=1)
    sibling_score_floor: float = Field(default=10.0, ge=0)
    sibling_score_ratio: float = Field(default=0.2, ge=0)
    sibling_max_link_density: float = Field(default=0.5, ge=0)
    prose_min_length: int = Field(default=80, ge=0)
    prose_max_link_density: float = Field(default=0.25, ge=0)
    clean_max_link_density: float = Field(default=0.5, ge=0)
    clean_min_text_length: int = Field(default=25, ge=0)
    hash_link_weight: float = Field(default=0.3, ge=0, le=1)
    byline_max_length: int = Field(default=100, gt=0)
    allowed_attributes: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ATTRIBUTES))

    @field_validator("level_dividers")
    @classmethod
    def check_dividers(cls, v: List[float]) -> List[float]:
        if not v:
            raise ValueError("level_dividers must not be empty")
        if any(d <= 0 for d in v):
            raise ValueError("level_dividers must be positive")
        return v

    @field_validator("tag_weights", mode="before")
    @classmethod
    def lowercase_tags(cls, v: Dict[str, int]) -> Dict[str, int]:
        return {str(k).lower(): w for k, w in (v or {}).items()}


@dataclass(slots=True, frozen=True)
class ResolvedOptions:
    """Options with every default filled in, fixed for the duration of one call."""

    max_elems_to_parse: int = 0
    nb_top_candidates: int = 5
    char_threshold: int = 140
    classes_to_preserve: Tuple[str, ...] = ()
    keep_classes: bool = False
    disable_jsonld: bool = False
    link_density_modifier: float = 1.0


class ReadabilityOptions(BaseModel):
    """Per-call options. Unset fields take the engine defaults."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    max_elems_to_parse: Optional[int] = Field(default=None, ge=0, description="Element cap, 0 for unlimited.")
    nb_top_candidates: Optional[int] = Field(default=None, ge=1)
    char_threshold: Optional[int] = Field(default=None, ge=0)
    classes_to_preserve: Optional[List[str]] = None
    keep_classes: Optional[bool] = None
    disable_jsonld: Optional[bool] = None
    link_density_modifier: Optional[float] = Field(
        default=None, gt=0, description="Multiplier applied to link-density thresholds."
    )

    @field_validator("classes_to_preserve")
    @classmethod
    def drop_blank_classes(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        return [c.strip() for c in v if c and c.strip()]

    def resolve(self) -> ResolvedOptions:
        defaults = ResolvedOptions()
        return ResolvedOptions(
            max_elems_to_parse=_pick(self.max_elems_to_parse, defaults.max_elems_to_parse),
            nb_top_candidates=_pick(self.nb_top_candidates, defaults.nb_top_candidates),
            char_threshold=_pick(self.char_threshold, defaults.char_threshold),
            classes_to_preserve=tuple(self.classes_to_preserve or ()),
            keep_classes=_pick(self.keep_classes, defaults.keep_classes),
            disable_jsonld=_pick(self.disable_jsonld, defaults.disable_jsonld),
            link_density_modifier=_pick(self.link_density_modifier, defaults.link_density_modifier),
        )


def _pick(value, default):
    return default if value is None else value


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="WARNING", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to stderr.")
    json_logs: bool = Field(default=False, description="Render log records as JSON.")
    metrics_enabled: bool = True

    @field_validator("log_level")
    @classmethod
    def check_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


class FetchConfig(BaseModel):
    """HTTP settings used when the CLI is given a URL."""

    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds.")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
        ),
    )
    accept: str = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
    follow_redirects: bool = True


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "readercore"
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    options: ReadabilityOptions = Field(default_factory=ReadabilityOptions)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)

    model_config = SettingsConfigDict(env_prefix="READERCORE_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)
