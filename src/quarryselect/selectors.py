"""
Selector dialects used to query parsed HTML documents.

Two dialects are supported and chosen once per configuration:

- ``css``: structural selectors, translated to XPath by cssselect
- ``xpath``: path expressions evaluated directly by lxml

Selectors may contain ``${name}`` placeholders that the host resolves from
record attributes; syntax checking of such selectors is deferred until the
placeholders have been substituted.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from lxml import etree
from lxml import html as lxml_html
from lxml.cssselect import CSSSelector, SelectorError

from .exceptions import RuntimeExtractionError

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]*)\}")


class SelectorDialect(Enum):
    """Query language of every selector in one configuration."""

    CSS = "css"
    XPATH = "xpath"


def has_placeholders(expression: str) -> bool:
    """Return True when the expression contains host-evaluated placeholders."""
    return PLACEHOLDER_PATTERN.search(expression) is not None


def substitute_placeholders(expression: str, attributes: Mapping[str, str]) -> str:
    """Replace ``${name}`` placeholders with record attribute values.

    Raises:
        RuntimeExtractionError: If a placeholder names an unknown attribute
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1).strip()
        if name not in attributes:
            raise RuntimeExtractionError(f"Selector placeholder '{name}' has no matching record attribute")
        return attributes[name]

    return PLACEHOLDER_PATTERN.sub(_replace, expression)


def _is_empty_scalar(value: Any) -> bool:
    if isinstance(value, bool):
        return not value
    if isinstance(value, float):
        return math.isnan(value)
    return isinstance(value, str) and value == ""


@dataclass(frozen=True)
class _BaseSelector:
    expression: str

    @property
    def deferred(self) -> bool:
        return has_placeholders(self.expression)

    def compile(self) -> etree.XPath:
        raise NotImplementedError

    def resolve(self, attributes: Mapping[str, str]) -> "Selector":
        """Return a copy with placeholders substituted from ``attributes``."""
        if not self.deferred:
            return self  # type: ignore[return-value]
        return replace(self, expression=substitute_placeholders(self.expression, attributes))  # type: ignore[return-value]

    def select(self, root: Any) -> List[Any]:
        """Evaluate the selector against ``root`` and return matches in document order.

        Node-set results are returned as elements or strings. Scalar XPath
        results are returned as a one-item list, except for the empty string,
        ``false()`` and NaN, which are what string, boolean and number functions
        return when their argument selects nothing.
        """
        try:
            result = self.compile()(root)
        except (etree.XPathError, SelectorError) as e:
            raise RuntimeExtractionError(f"Failed to evaluate selector '{self.expression}': {e}") from e

        if isinstance(result, list):
            return result
        if _is_empty_scalar(result):
            return []
        return [result]

    def select_first(self, root: Any) -> Optional[Any]:
        matches = self.select(root)
        return matches[0] if matches else None


@dataclass(frozen=True)
class StructuralSelector(_BaseSelector):
    """CSS selector; matching includes the context element itself."""

    dialect = SelectorDialect.CSS

    def compile(self) -> etree.XPath:
        return CSSSelector(self.expression, translator="html")


@dataclass(frozen=True)
class PathSelector(_BaseSelector):
    """XPath expression evaluated with the scoped root as context node."""

    dialect = SelectorDialect.XPATH

    def compile(self) -> etree.XPath:
        return etree.XPath(self.expression)


Selector = Union[StructuralSelector, PathSelector]


def make_selector(expression: str, dialect: SelectorDialect) -> Selector:
    if dialect is SelectorDialect.XPATH:
        return PathSelector(expression)
    return StructuralSelector(expression)


def check_selector(expression: str, dialect: SelectorDialect) -> Optional[str]:
    """Check selector syntax.

    The selector is compiled and evaluated once against an empty document so
    that errors only raised on evaluation (unknown functions, undeclared
    prefixes) are reported as well.

    Returns:
        None when the selector is valid or contains placeholders, otherwise
        the reason it was rejected
    """
    if not expression or not expression.strip():
        return "Selector must not be blank"
    if has_placeholders(expression):
        return None

    selector = make_selector(expression, dialect)
    try:
        compiled = selector.compile()
        compiled(lxml_html.document_fromstring("<html></html>"))
    except (etree.XPathError, SelectorError) as e:
        return str(e) or type(e).__name__
    return None
