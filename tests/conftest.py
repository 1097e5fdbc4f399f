"""
Test configuration for QuarrySelect.

Provides sample documents, configuration builders and logging isolation
shared by the unit and integration suites.
"""

# Standard library imports
import logging
from typing import Any, Callable, Generator

# Third-party imports
import pytest
import structlog

# Local imports
from quarryselect import ExtractionConfig, FlowRecord, HtmlEvaluator, configure

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")
    config.addinivalue_line("markers", "slow: Tests that take >10 seconds")


# ============================================================================
# Logging Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo logging configuration made by the CLI or logging tests."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


# ============================================================================
# Sample Documents
# ============================================================================


@pytest.fixture
def sample_html() -> str:
    """Provide a small product listing page."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Catalogue</title>
        <script>var tracking = "ignored";</script>
    </head>
    <body>
        <header id="main-header">
            <h1 class="title">Spring   Catalogue</h1>
            <ul class="nav">
                <li><a href="/home">Home</a></li>
                <li><a href="/about">About</a></li>
            </ul>
        </header>
        <div id="products">
            <div class="product" data-sku="A1">
                <span class="name">Lamp</span>
                <span class="price">19.99</span>
            </div>
            <div class="product" data-sku="B2">
                <span class="name">Chair</span>
                <span class="price">49.00</span>
            </div>
            <p class="note">Prices include <b>VAT</b>.</p>
        </div>
    </body>
    </html>
    """


@pytest.fixture
def sample_record(sample_html: str) -> FlowRecord:
    """Provide the sample page as a record with a filename attribute."""
    return FlowRecord(content=sample_html.encode("utf-8"), attributes={"filename": "catalogue.html"})


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def make_config() -> Callable[..., ExtractionConfig]:
    """Build an ExtractionConfig from selectors and setting overrides."""

    def _make(selectors: Any, **settings: Any) -> ExtractionConfig:
        return configure({"selectors": selectors, **settings})

    return _make


@pytest.fixture
def make_evaluator(make_config: Callable[..., ExtractionConfig]) -> Callable[..., HtmlEvaluator]:
    """Build an HtmlEvaluator from selectors and setting overrides."""

    def _make(selectors: Any, **settings: Any) -> HtmlEvaluator:
        return HtmlEvaluator(make_config(selectors, **settings))

    return _make
