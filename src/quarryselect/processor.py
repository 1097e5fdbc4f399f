"""
Record processor for QuarrySelect.

Parses each record's content, runs the extraction against the current
configuration snapshot, writes the result to the configured destination and
decides which route the record is forwarded to.
"""

from __future__ import annotations

import threading
from typing import Any, Mapping, Optional, Union

import structlog

from .config import ExtractionSettings, configure
from .extractor import assemble, evaluate, parse_document
from .protocols import ExtractionConfig, ExtractionResult, FlowRecord, Outcome, Route, RoutedRecord

logger = structlog.get_logger(__name__)

RawConfig = Union[ExtractionConfig, ExtractionSettings, Mapping[str, Any]]


def _snapshot(raw: RawConfig) -> ExtractionConfig:
    if isinstance(raw, ExtractionConfig):
        return raw
    return configure(raw)


class HtmlEvaluator:
    """
    Evaluates HTML records against a set of named selectors.

    The configuration snapshot is replaced as a whole by ``reconfigure`` and
    read once at the start of ``process``, so records processed concurrently
    from several threads always see one complete configuration.
    """

    def __init__(self, config: RawConfig) -> None:
        """
        Initialize the evaluator.

        Args:
            config: A configured snapshot, validated settings or raw mapping

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self._config = _snapshot(config)
        self._reconfigure_lock = threading.Lock()
        self.logger = logger.bind(component="HtmlEvaluator")

    @property
    def config(self) -> ExtractionConfig:
        return self._config

    def reconfigure(self, config: RawConfig) -> ExtractionConfig:
        """Validate and publish a new configuration snapshot.

        An invalid configuration raises ConfigurationError and leaves the
        current snapshot in place.
        """
        snapshot = _snapshot(config)
        with self._reconfigure_lock:
            self._config = snapshot
        self.logger.info("Configuration updated", fields=snapshot.field_names, dialect=snapshot.dialect.value)
        return snapshot

    def process(self, record: FlowRecord) -> RoutedRecord:
        """
        Extract the configured fields from one record and route it.

        Args:
            record: Record whose content is UTF-8 HTML

        Returns:
            RoutedRecord forwarded to SUCCESS, NOT_FOUND (root missing, record
            unchanged) or FAILURE (record unchanged, error reported)
        """
        config = self._config

        try:
            document = parse_document(record.content)
            result = evaluate(document, config, record.attributes)

            if result.outcome is Outcome.NOT_FOUND:
                self.logger.debug("Root element not found, routing to not found")
                return RoutedRecord(record=record, route=Route.NOT_FOUND, result=result)

            updated, provenance = assemble(record, result, config)
        except Exception as e:
            self.logger.error(
                "Extraction failed",
                event_type="extraction_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return RoutedRecord(
                record=record,
                route=Route.FAILURE,
                result=ExtractionResult.failure(str(e)),
                error=str(e),
            )

        self.logger.debug(
            "Extraction completed",
            destination=config.destination.value,
            extracted=list(result.fields),
        )
        return RoutedRecord(record=updated, route=Route.SUCCESS, result=result, provenance=provenance)

    def process_html(self, html: Union[str, bytes], attributes: Optional[Mapping[str, str]] = None) -> RoutedRecord:
        """Convenience wrapper building a FlowRecord from HTML text."""
        content = html.encode("utf-8") if isinstance(html, str) else html
        return self.process(FlowRecord(content=content, attributes=dict(attributes or {})))
