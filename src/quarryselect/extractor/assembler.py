"""
Writes extracted field values to their configured destination.
"""

from __future__ import annotations

from typing import Tuple

from ..protocols import (
    ATTRIBUTES_CHANGED_DESCRIPTION,
    CONTENT_CHANGED_DESCRIPTION,
    JSON_MIME_TYPE,
    MIME_TYPE_ATTRIBUTE,
    Destination,
    ExtractionConfig,
    ExtractionResult,
    FlowRecord,
    dump_json,
)


def generate_content(result: ExtractionResult, config: ExtractionConfig) -> str:
    """
    Build the replacement content for the CONTENT destination.

    A single configured field is written unwrapped: its value as-is, or its
    JSON array text when it matched several elements. Several fields are
    written as one JSON array in declaration order, with array-valued fields
    nested as arrays. Omitted fields do not appear.
    """
    if len(config.fields) > 1:
        return dump_json([value.as_json() for value in result.fields.values()])

    for value in result.fields.values():
        return value.as_attribute()
    return ""


def assemble(record: FlowRecord, result: ExtractionResult, config: ExtractionConfig) -> Tuple[FlowRecord, str]:
    """
    Apply a successful extraction to a record.

    Returns:
        The updated record and a description of what changed
    """
    if config.destination is Destination.CONTENT:
        content = generate_content(result, config).encode("utf-8")
        return record.with_content(content, {MIME_TYPE_ATTRIBUTE: JSON_MIME_TYPE}), CONTENT_CHANGED_DESCRIPTION

    return record.with_attributes(result.values), ATTRIBUTES_CHANGED_DESCRIPTION
