# File: backend/app/core/optimizer/large_dataset.py
# Version: v0.1.1
"""
Display-time reduction of large feature sets.

- `filter_features_for_rendering`: spatially balanced, importance-ordered
  sampling down to a feature budget.
- `calculate_feature_density`: fixed-window feature density over the sequence.
- `stratified_sampling`: proportional sampling across caller-defined strata,
  every stratum kept at least once.

Each optimizer owns its LRU cache and its random source. Instances are not
thread-safe; give every consumer (HTTP request, CLI run) its own.
"""

from __future__ import annotations

import logging
import math
import random
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Sequence, TypeVar

from backend.app.core.annotation.coordinates import feature_span, to_number

logger = logging.getLogger(__name__)

T = TypeVar("T")

FEATURES_PER_GROUP = 500
DEFAULT_CACHE_SIZE = 50


class CacheManager:
    """Least-recently-used cache with a fixed capacity."""

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE):
        self.max_size = max(1, int(max_size))
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get(self, key: Hashable, default: Any = None) -> Any:
        if key not in self._entries:
            return default
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, key: Hashable, value: Any) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def _importance_of(feature: Any) -> float:
    if isinstance(feature, Mapping):
        value = to_number(feature.get("importance"))
        return float(value) if value is not None else 0.0
    return 0.0


def _midpoint(feature: Any) -> float:
    span = feature_span(feature)
    if span is None:
        return 0.0
    return (span[0] + span[1]) / 2


class LargeDatasetOptimizer:
    def __init__(self, cache: Optional[CacheManager] = None, rng: Optional[random.Random] = None):
        self.cache = cache if cache is not None else CacheManager(DEFAULT_CACHE_SIZE)
        self.rng = rng if rng is not None else random.Random()

    # ---------- Spatial sampling ----------

    def filter_features_for_rendering(
        self,
        features: Sequence[Any],
        total_length: float,
        *,
        max_features: int = 1500,
        sample_rate: float = 1.0,
        importance_threshold: float = 0.0,
        importance: Optional[Callable[[Any], float]] = None,
    ) -> List[Any]:
        """
        Reduce `features` to at most `max_features`, drawn evenly across the sequence.

        Features are bucketed by midpoint into ceil(n / 500) equal-width
        position groups; each group is ordered by importance (highest first)
        and contributes ceil(ceil(max_features / groups) * sample_rate)
        features. The cache key covers the feature count, the length, the
        parameters and the scorer, but not feature identity, so two different
        feature lists of equal size share an entry.
        """
        if len(features) <= max_features:
            return list(features)

        key = ("filter", len(features), total_length, max_features, sample_rate, importance_threshold, importance)
        if key in self.cache:
            return self.cache.get(key)

        score = importance or _importance_of
        candidates = list(features)
        if importance_threshold > 0:
            candidates = [f for f in candidates if score(f) >= importance_threshold]

        group_count = max(1, math.ceil(len(features) / FEATURES_PER_GROUP))
        group_width = max(1, math.floor((total_length or 0) / group_count))
        groups: List[List[Any]] = [[] for _ in range(group_count)]
        for feature in candidates:
            index = int(_midpoint(feature) // group_width)
            groups[min(group_count - 1, max(0, index))].append(feature)

        per_group = math.ceil(math.ceil(max_features / group_count) * sample_rate)
        sampled: List[Any] = []
        for group in groups:
            ranked = sorted(group, key=score, reverse=True)
            sampled.extend(ranked[:per_group])

        result = sampled[:max_features]
        logger.debug("Filtered %d features to %d across %d groups", len(features), len(result), group_count)
        self.cache.set(key, result)
        return result

    # ---------- Density ----------

    def calculate_feature_density(
        self,
        features: Sequence[Any],
        total_length: float,
        window_size: int = 1000,
    ) -> List[Dict[str, float]]:
        """Count of overlapping features per window, divided by the window width."""
        key = ("density", len(features), total_length, window_size)
        if key in self.cache:
            return self.cache.get(key)

        window_size = max(1, window_size)
        window_count = max(0, math.ceil((total_length or 0) / window_size))
        counts = [0] * window_count

        for feature in features:
            span = feature_span(feature)
            if span is None or window_count == 0:
                continue
            lo, hi = min(span), max(span)
            first = max(0, math.floor(lo / window_size))
            last = min(window_count - 1, math.ceil(hi / window_size) - 1)
            for i in range(first, last + 1):
                window_start = i * window_size
                window_end = min(window_start + window_size, total_length)
                if min(window_end, hi) - max(window_start, lo) > 0:
                    counts[i] += 1

        density = [
            {"position": i * window_size + window_size / 2, "density": count / window_size}
            for i, count in enumerate(counts)
        ]
        self.cache.set(key, density)
        return density

    # ---------- Stratified sampling ----------

    def stratified_sampling(
        self,
        data: Sequence[T],
        target_size: int,
        stratifier: Callable[[T], Hashable],
    ) -> List[T]:
        if len(data) <= target_size:
            return list(data)

        strata: Dict[Hashable, List[T]] = {}
        for item in data:
            strata.setdefault(stratifier(item), []).append(item)

        total = len(data)
        samples: List[T] = []
        for items in strata.values():
            count = max(1, math.floor(len(items) / total * target_size))
            samples.extend(self._take_random(items, count))

        if len(samples) > target_size:
            return self._take_random(samples, target_size)
        return samples

    def _take_random(self, items: Sequence[T], count: int) -> List[T]:
        shuffled = list(items)
        for i in range(len(shuffled) - 1, 0, -1):
            j = self.rng.randint(0, i)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled[:count]

    # ---------- Cache ----------

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> Dict[str, int]:
        return {"size": len(self.cache), "maxSize": self.cache.max_size}
