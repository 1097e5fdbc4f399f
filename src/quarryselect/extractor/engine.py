"""
Selector-driven field extraction.

Resolves the root scope, evaluates every configured field selector against
it, renders the matches and applies the multiplicity and not-found rules.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog
from lxml import etree

from ..exceptions import RuntimeExtractionError
from ..protocols import (
    ExtractionConfig,
    ExtractionResult,
    FieldSpec,
    FieldValue,
    MultiplicityMode,
    NotFoundBehaviour,
    Outcome,
)
from .document import render_value

logger = structlog.get_logger(__name__)


def resolve_root(document: Any, config: ExtractionConfig, attributes: Mapping[str, str]) -> Optional[Any]:
    """Return the element field selectors are evaluated from, or None if the root is missing.

    A matched root is returned as a detached copy of its subtree, so absolute
    paths such as ``//span`` in field selectors cannot reach outside it.
    """
    if config.root_selector is None:
        return document

    root = config.root_selector.resolve(attributes).select_first(document)
    if root is None:
        return None
    if not isinstance(root, etree._Element):
        raise RuntimeExtractionError(f"Root selector must match an element, got {type(root).__name__}")
    return copy.deepcopy(root)


def resolve_multiplicity(
    rendered: Sequence[str],
    mode: MultiplicityMode,
    select_multiple: bool = False,
) -> Optional[FieldValue]:
    """
    Combine a field's rendered matches into its final value.

    Args:
        rendered: Rendered matches in selection order
        mode: COUNT wraps several matches in an array; FLAG also lets
            ``select_multiple`` force an array for a single match
        select_multiple: Only used in FLAG mode. True always produces an
            array; several matches produce one either way

    Returns:
        The field value, or None when nothing matched
    """
    if not rendered:
        return None

    forced = mode is MultiplicityMode.FLAG and select_multiple
    if forced or len(rendered) > 1:
        return FieldValue(tuple(rendered), is_array=True)
    return FieldValue((rendered[0],))


def apply_not_found(name: str, behaviour: NotFoundBehaviour, fields: Dict[str, FieldValue]) -> None:
    """Apply the not-found behaviour for a field without matches."""
    if behaviour is NotFoundBehaviour.WARN:
        logger.warning("Field did not match any elements", field=name)
    elif behaviour is NotFoundBehaviour.IGNORE:
        fields[name] = FieldValue(("",))
    # SKIP leaves the field out


def extract_field(
    root: Any, spec: FieldSpec, config: ExtractionConfig, attributes: Mapping[str, str]
) -> Optional[FieldValue]:
    """Evaluate one field selector and resolve its value."""
    matches = spec.selector.resolve(attributes).select(root)
    rendered: List[str] = [render_value(match, config.select_text) for match in matches]
    return resolve_multiplicity(rendered, config.multiplicity_mode, config.select_multiple)


def extract_fields(root: Any, config: ExtractionConfig, attributes: Mapping[str, str]) -> Dict[str, FieldValue]:
    """Evaluate every configured field in declaration order."""
    fields: Dict[str, FieldValue] = {}
    for spec in config.fields:
        value = extract_field(root, spec, config, attributes)
        if value is None:
            apply_not_found(spec.name, config.not_found_behaviour, fields)
            continue
        fields[spec.name] = value
    return fields


def evaluate(
    document: Any, config: ExtractionConfig, attributes: Optional[Mapping[str, str]] = None
) -> ExtractionResult:
    """
    Run the extraction for one parsed document.

    Args:
        document: Top element of the parsed document
        config: Extraction snapshot
        attributes: Record attributes used to resolve selector placeholders

    Returns:
        ExtractionResult with outcome SUCCESS, or NOT_FOUND when a configured
        root selector matched nothing

    Raises:
        RuntimeExtractionError: If a selector fails at evaluation time
    """
    attributes = attributes or {}

    root = resolve_root(document, config, attributes)
    if root is None:
        logger.debug("Root selector did not match any element")
        return ExtractionResult.not_found()

    return ExtractionResult(outcome=Outcome.SUCCESS, fields=extract_fields(root, config, attributes))
