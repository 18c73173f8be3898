"""
Shared fixtures for the readercore test suite.
"""

from __future__ import annotations

import logging

import pytest
import structlog

from readercore.config import ReadabilityOptions, ResolvedOptions, ScoringConfig
from readercore.extractor import Readability
from readercore.extractor.patterns import PatternTable
from tests.helpers.documents import article_html


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: End-to-end extraction tests")
    config.addinivalue_line("markers", "slow: Tests that take more than a few seconds")


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def patterns(scoring_config: ScoringConfig) -> PatternTable:
    return PatternTable.from_config(scoring_config)


@pytest.fixture
def engine() -> Readability:
    return Readability()


@pytest.fixture
def sample_html() -> str:
    return article_html()


@pytest.fixture
def default_options() -> ResolvedOptions:
    return ReadabilityOptions().resolve()


@pytest.fixture
def restore_logging():
    """Undo ``configure_logging`` so later tests see the default setup."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    structlog.reset_defaults()
