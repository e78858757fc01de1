# File: backend/app/core/annotation/parsers/json_parser.py
# Version: v0.2.1
"""
Structured JSON annotation parser.

Expected shape (everything optional):

    {
      "meta" | "summary": {"recordCount"|"featureCount", "totalLength", "organism"},
      "sequence": {"length": ...}, "length": ...,
      "features": [...],
      "displayName": ..., "featureStates": {...}, "plotTracks": [...], "linkTracks": [...]
    }

Feature entries pass through untouched; the tracks and feature states are
carried over raw and sanitized later by the normalization pipeline.

v0.2.0
- Carry displayName / featureStates / plotTracks / linkTracks when present.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping

from backend.app.core.annotation.coordinates import max_feature_stop, to_number
from backend.app.core.annotation.models import (
    FileParseRequest,
    FileParseResult,
    ParsedDatasetMeta,
    ParserSummary,
)
from backend.app.core.annotation.parsers.base import (
    AnnotationParseError,
    AnnotationParser,
    read_source,
)

logger = logging.getLogger(__name__)


def parse_meta(value: Any) -> ParsedDatasetMeta:
    if not isinstance(value, Mapping):
        return ParsedDatasetMeta(record_count=0)

    raw_count = value.get("recordCount")
    if raw_count is None:
        raw_count = value.get("featureCount")
    count = to_number(raw_count)

    total_length = to_number(value.get("totalLength"))
    organism = value.get("organism")
    return ParsedDatasetMeta(
        record_count=int(count) if count else 0,
        total_length=total_length if total_length else None,
        organism=organism if isinstance(organism, str) else None,
    )


def _declared_length(data: Mapping[str, Any]) -> Any:
    sequence = data.get("sequence")
    if isinstance(sequence, Mapping) and sequence.get("length") is not None:
        return sequence.get("length")
    if isinstance(sequence, str) and sequence:
        return len(sequence)
    return data.get("length")


class JsonAnnotationParser(AnnotationParser):
    format = "json"

    def summary(self) -> ParserSummary:
        return ParserSummary(
            format="json",
            display_name="JSON annotation parser",
            description="Reads structured JSON annotation files and keeps their feature list as-is.",
        )

    def parse(self, request: FileParseRequest) -> FileParseResult:
        raw = read_source(request.file_path)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise AnnotationParseError(f"Malformed JSON in {request.file_path}: {exc}") from exc

        if not isinstance(data, dict):
            data = {}

        meta_source = data.get("meta")
        if meta_source is None:
            meta_source = data.get("summary")
        meta = parse_meta(meta_source)

        features: List[Any] = data["features"] if isinstance(data.get("features"), list) else []

        if not meta.record_count:
            meta.record_count = len(features)

        if not meta.total_length:
            declared = to_number(_declared_length(data))
            if declared is not None and declared > 0:
                meta.total_length = declared
            else:
                max_stop = max_feature_stop(features)
                if max_stop > 0:
                    meta.total_length = max_stop

        dataset = self._dataset(request, meta, features)
        display_name = data.get("displayName")
        if isinstance(display_name, str) and display_name.strip():
            dataset.display_name = display_name.strip()
        dataset.feature_states = data.get("featureStates")
        dataset.plot_tracks = data.get("plotTracks")
        dataset.link_tracks = data.get("linkTracks")

        logger.info("JSON %s: %d features", request.file_path, len(features))
        return FileParseResult(dataset=dataset, warnings=[])
