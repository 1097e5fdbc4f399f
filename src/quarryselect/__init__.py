"""
QuarrySelect - Selector-driven field extraction from HTML records.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config, ExtractionSettings, configure
from .exceptions import ConfigurationError, QuarrySelectError, RuntimeExtractionError
from .processor import HtmlEvaluator
from .protocols import (
    Destination,
    ExtractionConfig,
    ExtractionResult,
    FieldSpec,
    FieldValue,
    FlowRecord,
    MultiplicityMode,
    NotFoundBehaviour,
    Outcome,
    Route,
    RoutedRecord,
)
from .selectors import PathSelector, SelectorDialect, StructuralSelector

__all__ = [
    "__version__",
    "Config",
    "ConfigurationError",
    "Destination",
    "ExtractionConfig",
    "ExtractionResult",
    "ExtractionSettings",
    "FieldSpec",
    "FieldValue",
    "FlowRecord",
    "HtmlEvaluator",
    "MultiplicityMode",
    "NotFoundBehaviour",
    "Outcome",
    "PathSelector",
    "QuarrySelectError",
    "Route",
    "RoutedRecord",
    "RuntimeExtractionError",
    "SelectorDialect",
    "StructuralSelector",
    "configure",
]
