"""Command-line interface for readercore."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional, Tuple

import click
import structlog
from pydantic import ValidationError

from readercore import __version__
from readercore.config import Config
from readercore.exceptions import ErrorKind, ReadabilityError
from readercore.extractor import Readability
from readercore.fetch import FetchError, fetch_html, try_parse_url
from readercore.observability import configure_logging, configure_metrics

logger = structlog.get_logger(__name__)

EXIT_FAILURE = 1
EXIT_CODES: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_OPTIONS: 2,
    ErrorKind.HTML_PARSE: 3,
    ErrorKind.READABILITY_CHECK: 4,
    ErrorKind.EXTRACTION: 5,
    ErrorKind.ENGINE_EVALUATION: 6,
}


def _fail(message: str, code: int = EXIT_FAILURE) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def _load_config(config_path: Optional[Path]) -> Config:
    try:
        return Config.from_yaml(config_path) if config_path else Config()
    except (OSError, ValidationError) as e:
        _fail(f"invalid configuration: {e}")


def _read_source(source: Optional[str], config: Config) -> Tuple[str, Optional[str]]:
    """Return the HTML text and, for URLs, the URL it came from."""
    if source is None:
        return sys.stdin.read(), None

    path = Path(source)
    if path.is_file():
        return path.read_text(encoding="utf-8", errors="replace"), None

    url = try_parse_url(source)
    if url is None:
        raise FileNotFoundError(f"file not found: {source}")
    return fetch_html(url, config.fetch), url


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("source", required=False)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a YAML configuration file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Override the configured log level.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["html", "text", "json"]),
    default="html",
    show_default=True,
    help="What to write to stdout.",
)
@click.option("--base-url", help="URL used to resolve relative links (defaults to the fetched URL).")
@click.option("--char-threshold", type=click.IntRange(min=0), help="Minimum text length of an article.")
@click.option("--nb-top-candidates", type=click.IntRange(min=1), help="Number of top candidates to consider.")
@click.option("--max-elems", type=click.IntRange(min=0), help="Abort on documents with more elements (0 = no limit).")
@click.option("--keep-classes", is_flag=True, help="Keep class attributes unchanged.")
@click.option("--preserve-class", "preserve_classes", multiple=True, help="Class name to keep (repeatable).")
@click.option("--disable-jsonld", is_flag=True, help="Ignore JSON-LD metadata.")
@click.option(
    "--link-density-modifier",
    type=click.FloatRange(min=0, min_open=True),
    help="Multiplier for link-density thresholds (>1 is more permissive).",
)
@click.version_option(__version__, prog_name="readercore")
def main(
    source: Optional[str],
    config_path: Optional[Path],
    log_level: Optional[str],
    output_format: str,
    base_url: Optional[str],
    char_threshold: Optional[int],
    nb_top_candidates: Optional[int],
    max_elems: Optional[int],
    keep_classes: bool,
    preserve_classes: Tuple[str, ...],
    disable_jsonld: bool,
    link_density_modifier: Optional[float],
) -> None:
    """Extract the readable article from SOURCE (a file path or URL; stdin when omitted)."""
    config = _load_config(config_path)
    if log_level:
        config.monitoring.log_level = log_level.upper()
    configure_logging(config.monitoring)
    configure_metrics(config.monitoring)

    overrides: Dict[str, Any] = {
        "char_threshold": char_threshold,
        "nb_top_candidates": nb_top_candidates,
        "max_elems_to_parse": max_elems,
        "link_density_modifier": link_density_modifier,
        "classes_to_preserve": list(preserve_classes) or None,
        "keep_classes": True if keep_classes else None,
        "disable_jsonld": True if disable_jsonld else None,
    }
    options = config.options.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    try:
        html, fetched_url = _read_source(source, config)
    except FetchError as e:
        _fail(str(e))
    except OSError as e:
        _fail(str(e) if isinstance(e, FileNotFoundError) else f"cannot read input: {e}")

    try:
        engine = Readability(config.scoring)
        article = engine.extract(html, base_url=base_url or fetched_url, options=options)
    except ReadabilityError as e:
        logger.debug("Extraction failed", kind=e.kind.value)
        _fail(str(e), EXIT_CODES[e.kind])

    if output_format == "json":
        click.echo(json.dumps(article.to_dict(), ensure_ascii=False, indent=2))
    elif output_format == "text":
        click.echo(article.text_content)
    else:
        click.echo(article.content)


if __name__ == "__main__":
    main()
