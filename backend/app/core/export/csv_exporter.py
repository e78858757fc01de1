# File: backend/app/core/export/csv_exporter.py
# Version: v0.3.0
"""
CSV exporter for dataset features.

Fixed columns first, then one column per qualifier key seen in any feature
(sorted). The output is readable by the CSV import parser.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Dict, List

from backend.app.core.annotation.coordinates import feature_span
from backend.app.core.annotation.models import ParsedDataset

FIXED_COLUMNS = ["id", "name", "type", "start", "stop", "strand", "color"]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def _row(feature: Dict[str, Any], qualifier_keys: List[str]) -> Dict[str, str]:
    span = feature_span(feature)
    start, stop = (min(span), max(span)) if span else (None, None)
    row = {
        "id": _cell(feature.get("id")),
        "name": _cell(feature.get("name")),
        "type": _cell(feature.get("type")),
        "start": _cell(start),
        "stop": _cell(stop),
        "strand": "-" if feature.get("strand") == -1 else "+",
        "color": _cell(feature.get("color")),
    }
    qualifiers = feature.get("qualifiers") if isinstance(feature.get("qualifiers"), dict) else {}
    for key in qualifier_keys:
        row[key] = _cell(qualifiers.get(key))
    return row


def export_features_to_csv(dataset: ParsedDataset, csv_path: Path) -> int:
    """Write one row per feature; returns the number of rows written."""
    features = [f for f in dataset.features if isinstance(f, dict)]

    qualifier_keys = sorted({
        str(k)
        for f in features
        if isinstance(f.get("qualifiers"), dict)
        for k in f["qualifiers"].keys()
        if str(k).lower() not in FIXED_COLUMNS
    })
    headers = FIXED_COLUMNS + qualifier_keys

    csv_path = Path(csv_path)
    with csv_path.open("w", newline="", encoding="utf-8") as fh:
        w = csv.DictWriter(fh, fieldnames=headers)
        w.writeheader()
        w.writerows(_row(f, qualifier_keys) for f in features)
    return len(features)
