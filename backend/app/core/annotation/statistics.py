# File: backend/app/core/annotation/statistics.py
# Version: v0.1.1
"""Feature-type counts for a dataset."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Tuple

from backend.app.core.annotation.models import DatasetStatistics, FeatureTypeStatistic

FEATURE_TYPE_KEYS = ("type", "source", "feature_type", "kind", "Type", "category")
DEFAULT_TYPE = "feature"


def classify_feature_type(feature: Any) -> Tuple[str, str]:
    """Return (key, label): key is the lower-cased type, label keeps its casing."""
    if isinstance(feature, Mapping):
        for name in FEATURE_TYPE_KEYS:
            value = feature.get(name)
            if isinstance(value, str) and value.strip():
                label = value.strip()
                return label.lower(), label
    return DEFAULT_TYPE, DEFAULT_TYPE


def compute_dataset_statistics(features: Iterable[Any]) -> DatasetStatistics:
    counts: Dict[str, FeatureTypeStatistic] = {}
    total = 0
    for feature in features:
        total += 1
        key, label = classify_feature_type(feature)
        entry = counts.get(key)
        if entry is None:
            counts[key] = FeatureTypeStatistic(key=key, label=label, count=1)
        else:
            entry.count += 1

    ordered: List[FeatureTypeStatistic] = sorted(
        counts.values(), key=lambda s: (-s.count, s.label.casefold(), s.label)
    )
    return DatasetStatistics(total_features=total, feature_types=ordered)
