# File: backend/app/core/annotation/parsers/gff3_parser.py
# Version: v0.2.0
"""
GFF3 parser.

- `##sequence-region` / `##species` directives feed total length / organism
  (first match wins); every other comment line is ignored.
- Data lines are tab-split; short lines and non-numeric coordinates are
  skipped with a warning.
- Column 9 attributes become the feature's qualifiers (percent-decoded).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence
from urllib.parse import unquote

from backend.app.core.annotation.coordinates import ordered_span, to_number
from backend.app.core.annotation.models import (
    Feature,
    FileParseRequest,
    FileParseResult,
    ParsedDatasetMeta,
    ParserSummary,
)
from backend.app.core.annotation.parsers.base import AnnotationParser, new_id, read_source

logger = logging.getLogger(__name__)

NAME_ATTRIBUTES = ("Name", "ID", "gene", "product")


def parse_attributes(value: str) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for segment in value.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        key, _, raw = segment.partition("=")
        key = key.strip()
        if not key:
            continue
        attributes[key] = unquote(raw.strip()) if raw else ""
    return attributes


def _derive_name(attributes: Dict[str, str], fallback: str) -> str:
    for key in NAME_ATTRIBUTES:
        if key in attributes:
            return attributes[key]
    return fallback


def parse_meta(lines: Sequence[str]) -> ParsedDatasetMeta:
    meta = ParsedDatasetMeta(record_count=0)
    for line in lines:
        if meta.total_length is None and line.startswith("##sequence-region"):
            parts = line.split()
            if len(parts) >= 4:
                length = to_number(parts[3])
                if length is not None and length > 0:
                    meta.total_length = length

        if meta.organism is None and line.startswith("##species"):
            parts = line.split()
            if len(parts) >= 2:
                meta.organism = unquote(parts[1])

        if meta.total_length is not None and meta.organism is not None:
            break
    return meta


def _optional_int(raw: str) -> Optional[int]:
    if not raw or raw == ".":
        return None
    number = to_number(raw)
    return int(number) if number is not None else None


def _optional_float(raw: str) -> Optional[float]:
    if not raw or raw == ".":
        return None
    number = to_number(raw)
    return float(number) if number is not None else None


class Gff3AnnotationParser(AnnotationParser):
    format = "gff3"

    def summary(self) -> ParserSummary:
        return ParserSummary(
            format="gff3",
            display_name="GFF3 parser",
            description="Reads .gff/.gff3 annotation files and normalizes their features.",
        )

    def parse(self, request: FileParseRequest) -> FileParseResult:
        lines = read_source(request.file_path).splitlines()

        meta = parse_meta(lines)
        warnings: List[str] = []
        features: List[dict] = []
        max_end = meta.total_length or 0

        for index, line in enumerate(lines):
            line_no = index + 1
            trimmed = line.strip()
            if not trimmed or trimmed.startswith("#"):
                continue

            columns = trimmed.split("\t")
            if len(columns) < 8:
                warnings.append(
                    f"Line {line_no} skipped: expected 8+ columns, got {len(columns)}."
                )
                continue

            seq_id, source, ftype, start_raw, end_raw, score_raw, strand_raw, phase_raw = columns[:8]
            attributes_raw = columns[8] if len(columns) > 8 else ""

            start = to_number(start_raw)
            end = to_number(end_raw)
            if start is None or end is None:
                warnings.append(f"Line {line_no} skipped: invalid start/end.")
                logger.debug("GFF3 line %d: start=%r end=%r", line_no, start_raw, end_raw)
                continue

            attributes = parse_attributes(attributes_raw)
            safe_start, safe_end = ordered_span(start, end)
            max_end = max(max_end, safe_end)

            feature = Feature(
                id=attributes.get("ID") or new_id(),
                type=ftype,
                name=_derive_name(attributes, f"{ftype} {len(features) + 1}"),
                start=safe_start,
                stop=safe_end,
                strand=-1 if strand_raw == "-" else 1,
                score=_optional_float(score_raw),
                phase=_optional_int(phase_raw),
                qualifiers=attributes,
                seq_id=seq_id,
                source=source,
            )
            features.append(feature.to_dict())

        if meta.total_length is None and max_end > 0:
            meta.total_length = max_end
        meta.record_count = len(features)

        logger.info("GFF3 %s: %d features, %d lines skipped", request.file_path, len(features), len(warnings))
        return FileParseResult(dataset=self._dataset(request, meta, features), warnings=warnings)
