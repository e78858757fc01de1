# File: backend/tests/test_large_dataset_optimizer.py
# Version: v0.1.1
"""Render-time reduction: spatial sampling, density, stratified sampling, LRU."""
import random
from collections import Counter

from backend.app.core.optimizer.large_dataset import CacheManager, LargeDatasetOptimizer

GENOME = 1_000_000


def _uniform_features(n=10_000, length=GENOME):
    step = length / n
    return [{"id": f"f{i}", "start": int(i * step), "stop": int(i * step) + 50} for i in range(n)]


def test_small_input_is_returned_unchanged():
    features = _uniform_features(100)
    out = LargeDatasetOptimizer().filter_features_for_rendering(features, GENOME)
    assert out == features


def test_filter_is_bounded_and_covers_every_decile():
    features = _uniform_features()
    out = LargeDatasetOptimizer().filter_features_for_rendering(features, GENOME, max_features=1500)
    assert 0 < len(out) <= 1500
    deciles = {min(9, int(((f["start"] + f["stop"]) / 2) // (GENOME / 10))) for f in out}
    assert deciles == set(range(10))


def test_filter_prefers_important_features_within_a_bucket():
    features = [{"start": i, "stop": i + 1, "importance": 0} for i in range(1000)]
    features[10]["importance"] = 5
    out = LargeDatasetOptimizer().filter_features_for_rendering(features, 1000, max_features=10)
    assert features[10] in out
    assert len(out) <= 10


def test_filter_importance_callable_and_threshold():
    features = [{"start": i, "stop": i + 1, "score": i % 3} for i in range(900)]
    out = LargeDatasetOptimizer().filter_features_for_rendering(
        features, 900, max_features=300, importance_threshold=2, importance=lambda f: f["score"]
    )
    assert out
    assert all(f["score"] == 2 for f in out)


def test_filter_results_are_cached_by_parameters():
    opt = LargeDatasetOptimizer()
    features = _uniform_features(3000)
    first = opt.filter_features_for_rendering(features, GENOME, max_features=500)
    second = opt.filter_features_for_rendering(features, GENOME, max_features=500)
    assert first is second
    assert opt.cache_stats() == {"size": 1, "maxSize": 50}
    opt.clear_cache()
    assert opt.cache_stats()["size"] == 0


def test_density_windows():
    features = [{"start": 0, "stop": 1500}, {"start": 1200, "stop": 1300}, {"start": 2500, "stop": 2500}]
    density = LargeDatasetOptimizer().calculate_feature_density(features, 2600, window_size=1000)
    assert [d["position"] for d in density] == [500, 1500, 2500]
    assert [d["density"] for d in density] == [1 / 1000, 2 / 1000, 0]


def test_stratified_sampling_keeps_small_strata():
    data = [("a", i) for i in range(10)] + [("b", i) for i in range(10)] + [("c", i) for i in range(980)]
    opt = LargeDatasetOptimizer(rng=random.Random(7))
    out = opt.stratified_sampling(data, 100, lambda item: item[0])
    counts = Counter(item[0] for item in out)
    assert counts["a"] >= 1
    assert counts["b"] >= 1
    assert len(out) <= 100


def test_stratified_sampling_trims_to_target():
    # 30 singleton strata, target 10: every stratum gets 1, then uniform trim
    data = list(range(30))
    out = LargeDatasetOptimizer(rng=random.Random(1)).stratified_sampling(data, 10, lambda x: x)
    assert len(out) == 10
    assert len(set(out)) == 10


def test_stratified_sampling_noop_below_target():
    data = [1, 2, 3]
    assert LargeDatasetOptimizer().stratified_sampling(data, 5, lambda x: x) == data


def test_lru_evicts_least_recently_used():
    cache = CacheManager(2)
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("a") == 1
    cache.set("c", 3)
    assert "b" not in cache
    assert "a" in cache and "c" in cache
    assert len(cache) == 2
    assert cache.get("missing", "dflt") == "dflt"


def test_cache_separates_scorers_and_lengths():
    opt = LargeDatasetOptimizer()
    features = [{"start": i, "stop": i + 1} for i in range(1000)]
    early = opt.filter_features_for_rendering(features, 1000, max_features=10, importance=lambda f: -f["start"])
    late = opt.filter_features_for_rendering(features, 1000, max_features=10, importance=lambda f: f["start"])
    assert early != late
    assert min(f["start"] for f in early) == 0
    assert max(f["start"] for f in late) == 999

    opt.filter_features_for_rendering(features, 2000, max_features=10, importance=_by_start)
    opt.filter_features_for_rendering(features, 1000, max_features=10, importance=_by_start)
    assert opt.cache_stats()["size"] == 4


def _by_start(feature):
    return feature["start"]
