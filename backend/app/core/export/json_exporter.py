# File: backend/app/core/export/json_exporter.py
# Version: v0.4.0

"""
Export a normalized dataset to JSON.

The file keeps the import JSON shape (`meta`, `features`, tracks,
`displayName`), so it can be re-imported with the JSON parser as-is.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from backend.app.core.annotation.models import ParsedDataset


def dataset_to_json(dataset: ParsedDataset, warnings: Optional[List[str]] = None) -> Dict[str, Any]:
    data = dataset.to_dict()
    if warnings:
        data["warnings"] = list(warnings)
    return data


def export_dataset_to_json(dataset: ParsedDataset,
                           json_path: Path,
                           warnings: Optional[List[str]] = None) -> None:
    """
    Write the dataset (plus import warnings, when any) to `json_path`.
    """
    payload = dataset_to_json(dataset, warnings)
    Path(json_path).write_text(json.dumps(payload, indent=2), encoding="utf-8")
