"""
Core enums and dataclasses for QuarrySelect.

This module defines the data passed between the extraction stages:

- ExtractionConfig: the immutable snapshot produced by ``configure``
- FieldValue / ExtractionResult: per-record extraction output
- FlowRecord / RoutedRecord: the host-facing record and its routing decision
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .selectors import Selector, SelectorDialect

# ============================================================================
# Enums and Constants
# ============================================================================

MIME_TYPE_ATTRIBUTE = "mime.type"
JSON_MIME_TYPE = "application/json"

ATTRIBUTES_CHANGED_DESCRIPTION = "Placed the value of the extracted elements in the record attributes"
CONTENT_CHANGED_DESCRIPTION = "Replaced the record content with the extracted elements"


class Destination(Enum):
    """Where extracted values are written."""

    ATTRIBUTE = "attribute"
    CONTENT = "content"


class NotFoundBehaviour(Enum):
    """Fallback applied when a field selector matches nothing."""

    WARN = "warn"  # log a warning and omit the field
    IGNORE = "ignore"  # set the field to the empty string
    SKIP = "skip"  # omit the field


class MultiplicityMode(Enum):
    """How the number of matches decides between scalar and array values."""

    COUNT = "count"  # scalar for one match, array for several
    FLAG = "flag"  # as COUNT, and select_multiple forces an array


class Outcome(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILURE = "failure"


class Route(Enum):
    """Named relationships a processed record is forwarded to."""

    SUCCESS = "success"
    NOT_FOUND = "not found"
    FAILURE = "failure"


# ============================================================================
# Configuration Snapshot
# ============================================================================


@dataclass(frozen=True)
class FieldSpec:
    """A named extraction rule."""

    name: str
    selector: Selector


@dataclass(frozen=True)
class ExtractionConfig:
    """Immutable extraction settings shared by every record in a run."""

    fields: Tuple[FieldSpec, ...]
    root_selector: Optional[Selector] = None
    dialect: SelectorDialect = SelectorDialect.CSS
    select_text: bool = True
    select_multiple: bool = False
    multiplicity_mode: MultiplicityMode = MultiplicityMode.COUNT
    destination: Destination = Destination.ATTRIBUTE
    not_found_behaviour: NotFoundBehaviour = NotFoundBehaviour.WARN

    @property
    def field_names(self) -> List[str]:
        return [spec.name for spec in self.fields]


# ============================================================================
# Extraction Results
# ============================================================================


def dump_json(value: object) -> str:
    """Compact, deterministic JSON used for every serialized value."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


@dataclass(frozen=True)
class FieldValue:
    """Resolved value of one field."""

    values: Tuple[str, ...]
    is_array: bool = False

    def as_attribute(self) -> str:
        """Return the value as a flat string (arrays as JSON array text)."""
        if self.is_array:
            return dump_json(list(self.values))
        return self.values[0] if self.values else ""

    def as_json(self) -> object:
        """Return the value as a JSON-compatible object."""
        if self.is_array:
            return list(self.values)
        return self.values[0] if self.values else ""


@dataclass
class ExtractionResult:
    """Per-record extraction output.

    ``fields`` keeps insertion order equal to the configured field order and
    only holds fields that produced a value (including ``""`` for ignored ones).
    """

    outcome: Outcome
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def values(self) -> Dict[str, str]:
        return {name: value.as_attribute() for name, value in self.fields.items()}

    @classmethod
    def not_found(cls) -> ExtractionResult:
        return cls(outcome=Outcome.NOT_FOUND)

    @classmethod
    def failure(cls, reason: str) -> ExtractionResult:
        return cls(outcome=Outcome.FAILURE, reason=reason)


# ============================================================================
# Host Records
# ============================================================================


@dataclass(frozen=True)
class FlowRecord:
    """A record handed over by the host: raw content plus string attributes."""

    content: bytes = b""
    attributes: Dict[str, str] = field(default_factory=dict)

    def with_attributes(self, attributes: Dict[str, str]) -> FlowRecord:
        merged = dict(self.attributes)
        merged.update(attributes)
        return FlowRecord(content=self.content, attributes=merged)

    def with_content(self, content: bytes, attributes: Optional[Dict[str, str]] = None) -> FlowRecord:
        merged = dict(self.attributes)
        merged.update(attributes or {})
        return FlowRecord(content=content, attributes=merged)


@dataclass(frozen=True)
class RoutedRecord:
    """A processed record and the relationship it is forwarded to."""

    record: FlowRecord
    route: Route
    result: ExtractionResult
    error: Optional[str] = None
    provenance: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "route": self.route.value,
            "attributes": dict(self.record.attributes),
            "content": self.record.content.decode("utf-8", errors="replace"),
            "error": self.error,
            "provenance": self.provenance,
        }
