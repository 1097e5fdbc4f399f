"""
QuarrySelect Extraction Module

Selector-driven extraction stages, leaves first:
1. Document parsing (lxml)
2. Root resolution
3. Field selection and value rendering (text or markup)
4. Multiplicity and not-found resolution
5. Result assembly into attributes or JSON content
"""

from .assembler import assemble, generate_content
from .document import element_markup, element_text, parse_document, render_value
from .engine import (
    apply_not_found,
    evaluate,
    extract_field,
    extract_fields,
    resolve_multiplicity,
    resolve_root,
)

__all__ = [
    "apply_not_found",
    "assemble",
    "element_markup",
    "element_text",
    "evaluate",
    "extract_field",
    "extract_fields",
    "generate_content",
    "parse_document",
    "render_value",
    "resolve_multiplicity",
    "resolve_root",
]
