from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from bs4 import BeautifulSoup, Tag

from carpark_pipeline.core.exceptions import ParseError
from carpark_pipeline.core.metrics import InMemoryPipelineMetricsCollector
from carpark_pipeline.providers.schema import DEFAULT_SCHEMAS, FieldRule, RecordKind, RecordSchema

T = TypeVar("T")
logger = logging.getLogger(__name__)

FRAGMENT_LOG_LIMIT = 500


class StructuralParser:
    def __init__(
        self,
        schemas: Mapping[RecordKind, RecordSchema] | None = None,
        metrics: InMemoryPipelineMetricsCollector | None = None,
        features: str = "html.parser",
    ) -> None:
        self._schemas = dict(DEFAULT_SCHEMAS if schemas is None else schemas)
        self._metrics = metrics
        self._features = features

    def load(self, document: str | BeautifulSoup) -> BeautifulSoup:
        if isinstance(document, BeautifulSoup):
            return document
        return BeautifulSoup(document, self._features)

    def parse(
        self,
        document: str | BeautifulSoup,
        kind: RecordKind,
        transform: Callable[[dict[str, Any]], T] | None = None,
    ) -> list[T]:
        schema = self._schemas[kind]
        soup = self.load(document)
        records: list = []
        for element in soup.select(schema.selector):
            try:
                row = self._extract_record(element, schema)
                records.append(transform(row) if transform else row)
            except Exception as exc:
                error = exc if isinstance(exc, ParseError) else ParseError(f"{schema.kind}: {exc}")
                logger.error(
                    "record_parse_failed",
                    extra={
                        "component": "carpark_pipeline",
                        "kind": schema.kind,
                        "error": str(error),
                        "fragment": str(element)[:FRAGMENT_LOG_LIMIT],
                    },
                )
                if self._metrics:
                    self._metrics.increment_parse_error(schema.kind)
        logger.debug(
            "records_parsed",
            extra={"component": "carpark_pipeline", "kind": schema.kind, "record_count": len(records)},
        )
        return records

    def _extract_record(self, element: Tag, schema: RecordSchema) -> dict[str, Any]:
        row = {rule.name: self._extract_field(element, rule) for rule in schema.fields}
        for name, nested in schema.nested.items():
            block = element.select_one(nested.selector)
            row[name] = self._extract_record(block, nested) if block is not None else None
        return row

    def _extract_field(self, element: Tag, rule: FieldRule) -> Any:
        if rule.many:
            nodes = [element] if rule.selector is None else element.select(rule.selector)
            values = [self._raw_value(node, rule) for node in nodes]
            return [rule.convert(value) for value in values if value is not None]
        node = element if rule.selector is None else element.select_one(rule.selector)
        if node is None:
            return rule.default
        value = self._raw_value(node, rule)
        if value is None:
            return rule.default
        return rule.convert(value)

    @staticmethod
    def _raw_value(node: Tag, rule: FieldRule) -> Any:
        if rule.attribute is None:
            return node.get_text()
        value = node.get(rule.attribute)
        if isinstance(value, list):
            raise ParseError(f"attribute {rule.attribute!r} is multi-valued")
        return value
