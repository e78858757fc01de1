# File: backend/app/core/annotation/parsers/csv_parser.py
# Version: v0.2.0
"""
CSV feature-table parser.

Header names are trimmed and lower-cased before lookup. `start` and `stop`
must be present directly or through an alias (`begin`; `end`/`map_stop`),
otherwise the file is rejected. Rows lacking both coordinates are skipped
with a warning; a row with only one side is anchored to it.

Columns outside the recognized field set are kept per feature as
`qualifiers` (omitted when there are none).
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, Dict, List, Optional, Tuple

from backend.app.core.annotation.coordinates import (
    first_number,
    first_text,
    normalize_strand,
    ordered_span,
    to_number,
)
from backend.app.core.annotation.models import (
    Feature,
    FileParseRequest,
    FileParseResult,
    ParsedDatasetMeta,
    ParserSummary,
)
from backend.app.core.annotation.parsers.base import (
    AnnotationParseError,
    AnnotationParser,
    new_id,
    read_source,
)

logger = logging.getLogger(__name__)

START_COLUMNS = ("start", "begin", "map_start", "offset")
STOP_COLUMNS = ("stop", "end", "map_stop")
TYPE_COLUMNS = ("type", "feature", "category")
NAME_COLUMNS = ("name", "label", "id")
COLOR_COLUMNS = ("color", "colour", "hex")
STRAND_COLUMNS = ("strand", "direction")
LENGTH_COLUMNS = ("sequence_length", "length", "total_length")

# Header must satisfy each logical column through one of these names.
REQUIRED_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "start": ("start", "begin"),
    "stop": ("stop", "end", "map_stop"),
}

CONSUMED_COLUMNS = frozenset(
    START_COLUMNS + STOP_COLUMNS + ("length",) + TYPE_COLUMNS + NAME_COLUMNS + COLOR_COLUMNS + STRAND_COLUMNS
)


def _normalize_key(value: str) -> str:
    return value.strip().lower()


def _read_rows(raw: str) -> Tuple[List[str], List[Dict[str, str]]]:
    """Tokenize CSV text into (normalized header, row dicts); blank lines are skipped."""
    try:
        records = [r for r in csv.reader(io.StringIO(raw)) if any(cell.strip() for cell in r)]
    except csv.Error as exc:
        raise AnnotationParseError(f"CSV parse failed: {exc}") from exc
    if not records:
        return [], []

    header = [_normalize_key(h) for h in records[0]]
    rows: List[Dict[str, str]] = []
    for offset, record in enumerate(records[1:], start=2):
        if len(record) != len(header):
            raise AnnotationParseError(
                f"CSV parse failed: row {offset} has {len(record)} fields, expected {len(header)}."
            )
        rows.append(dict(zip(header, record)))
    return header, rows


def _row_stop(row: Dict[str, str], start: Optional[float]) -> Optional[float]:
    stop = first_number(row, STOP_COLUMNS)
    if stop is not None:
        return stop
    length = to_number(row.get("length"))
    if length is not None:
        return length + (start or 0)
    return None


def _row_to_feature(row: Dict[str, str], index: int) -> Optional[Feature]:
    start = first_number(row, START_COLUMNS)
    stop = _row_stop(row, start)
    if start is None and stop is None:
        return None

    safe_start = start if start is not None else stop
    safe_stop = stop if stop is not None else safe_start
    lo, hi = ordered_span(safe_start, safe_stop)

    ftype = first_text(row, TYPE_COLUMNS) or "feature"
    name = first_text(row, NAME_COLUMNS) or f"{ftype} {index}"
    color = first_text(row, COLOR_COLUMNS)
    strand_raw = next((row[k] for k in STRAND_COLUMNS if k in row and row[k].strip()), None)

    qualifiers: Dict[str, Any] = {k: v for k, v in row.items() if k not in CONSUMED_COLUMNS}

    return Feature(
        id=new_id(),
        type=ftype,
        name=name,
        start=lo,
        stop=hi,
        strand=normalize_strand(strand_raw),
        color=color.strip() if color else None,
        qualifiers=qualifiers or None,
    )


def parse_meta(rows: List[Dict[str, str]]) -> ParsedDatasetMeta:
    meta = ParsedDatasetMeta(record_count=len(rows))
    for row in rows:
        if meta.organism is None:
            organism = row.get("organism")
            if organism and organism.strip():
                meta.organism = organism.strip()

        if meta.total_length is None:
            length = first_number(row, LENGTH_COLUMNS)
            if length is not None and length > 0:
                meta.total_length = length

        if meta.organism is not None and meta.total_length is not None:
            break
    return meta


class CsvAnnotationParser(AnnotationParser):
    format = "csv"

    def summary(self) -> ParserSummary:
        return ParserSummary(
            format="csv",
            display_name="CSV track parser",
            description="Reads comma-separated feature lists (start, stop, name, type, strand, color, ...).",
        )

    def parse(self, request: FileParseRequest) -> FileParseResult:
        header, rows = _read_rows(read_source(request.file_path))

        if not rows:
            dataset = self._dataset(request, ParsedDatasetMeta(record_count=0), [])
            return FileParseResult(dataset=dataset, warnings=["File empty: no features parsed."])

        for logical, aliases in REQUIRED_COLUMNS.items():
            if not any(alias in header for alias in aliases):
                raise AnnotationParseError(
                    f'Missing required column "{logical}" (accepted: {", ".join(aliases)}).'
                )

        meta = parse_meta(rows)
        features: List[dict] = []
        warnings: List[str] = []
        max_stop = meta.total_length or 0

        # Row numbers are 1-based over data rows plus the header line.
        for index, row in enumerate(rows, start=1):
            feature = _row_to_feature(row, index)
            if feature is None:
                warnings.append(f"Row {index + 1} skipped: missing start/stop.")
                logger.debug("CSV row %d dropped: %r", index + 1, row)
                continue
            max_stop = max(max_stop, feature.stop)
            features.append(feature.to_dict())

        if meta.total_length is None and max_stop > 0:
            meta.total_length = max_stop
        meta.record_count = len(features)

        logger.info("CSV %s: %d features, %d rows skipped", request.file_path, len(features), len(warnings))
        return FileParseResult(dataset=self._dataset(request, meta, features), warnings=warnings)
