"""
Document parsing and value rendering backed by lxml.
"""

from __future__ import annotations

from typing import Any, List

from lxml import etree
from lxml import html as lxml_html

from ..exceptions import RuntimeExtractionError

EMPTY_DOCUMENT = b"<html><head></head><body></body></html>"

# Elements whose boundaries separate words in rendered text
BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "br",
        "dd",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "li",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

SKIPPED_TEXT_TAGS = frozenset({"script", "style", "template"})


def parse_document(data: bytes) -> lxml_html.HtmlElement:
    """Parse raw record bytes as UTF-8 HTML.

    Args:
        data: Record content

    Returns:
        The document's top ``<html>`` element

    Raises:
        RuntimeExtractionError: If the content cannot be parsed
    """
    if not data or not data.strip():
        data = EMPTY_DOCUMENT

    # Parsers are not shared between threads
    parser = lxml_html.HTMLParser(encoding="utf-8")
    try:
        return lxml_html.document_fromstring(data, parser=parser)
    except (etree.ParserError, ValueError) as e:
        raise RuntimeExtractionError(f"Failed to parse HTML document: {e}") from e


def _collect_text(element: Any, parts: List[str]) -> None:
    tag = element.tag
    if not isinstance(tag, str):
        # Comments and processing instructions
        return

    tag = tag.lower()
    if tag in SKIPPED_TEXT_TAGS:
        return

    block = tag in BLOCK_TAGS
    if block:
        parts.append(" ")
    if element.text:
        parts.append(element.text)
    for child in element:
        _collect_text(child, parts)
        if child.tail:
            parts.append(child.tail)
    if block:
        parts.append(" ")


def element_text(element: Any) -> str:
    """Return the normalized text of an element and its descendants."""
    parts: List[str] = []
    _collect_text(element, parts)
    return " ".join("".join(parts).split())


def element_markup(element: Any) -> str:
    """Return the element serialized as HTML, including its own tag."""
    return lxml_html.tostring(element, encoding="unicode", method="html", with_tail=False)


def render_value(node: Any, select_text: bool) -> str:
    """Render a selector match as a string.

    Elements render as text or markup; strings, numbers and booleans returned
    by path expressions render as their XPath string value.
    """
    if isinstance(node, etree._Element):
        return element_text(node) if select_text else element_markup(node)
    if isinstance(node, bool):
        return "true" if node else "false"
    if isinstance(node, float) and node.is_integer():
        return str(int(node))
    return str(node)
