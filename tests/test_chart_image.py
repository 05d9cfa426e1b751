"""
Tests for chart → image resolution.

Covers:
  - chart reference helpers (name / version / repo split)
  - chart_latest_version over search results
  - ChartImageCache first-writer-wins semantics, concurrent inserts
  - image_repository_from_values decoding
  - ChartImageResolver: hits, misses, failures not cached, metrics
"""

import threading

import pytest

from release_train.adapters.mock import MockValuesProvider
from release_train.core.errors import ChartValuesDecodeError, ChartValuesError
from release_train.core.models.release import ChartSearchResult
from release_train.core.services.chart_image import (
    ChartImageCache,
    ChartImageResolver,
    chart_latest_version,
    image_repository_from_values,
    split_chart_name,
    split_chart_repo,
    split_chart_version,
)

REF = "repo/my-chart - 0.1.0"


# ═══════════════════════════════════════════════════════════════════
#  1. CHART REFERENCE HELPERS
# ═══════════════════════════════════════════════════════════════════


class TestChartReference:
    def test_split_name(self):
        assert split_chart_name(REF) == "repo/my-chart"
        assert split_chart_name("repo/my-chart") == "repo/my-chart"

    def test_split_version(self):
        assert split_chart_version(REF) == "0.1.0"
        assert split_chart_version("repo/my-chart") == ""

    def test_split_repo(self):
        assert split_chart_repo(REF) == "repo"
        assert split_chart_repo("my-chart") == ""
        assert split_chart_repo("my-chart - 1.0.0") == ""


class TestChartLatestVersion:
    def _result(self, version, name="repo/my-chart"):
        return ChartSearchResult(name=name, chart_version=version)

    def test_only_pinned_version(self):
        assert chart_latest_version(REF, [self._result("0.1.0")]) == ""

    def test_newer_version(self):
        results = [self._result("0.1.0"), self._result("0.2.0")]
        assert chart_latest_version(REF, results) == "0.2.0"

    def test_numeric_not_lexical(self):
        results = [self._result("0.9.0"), self._result("0.10.0")]
        assert chart_latest_version(REF, results) == "0.10.0"

    def test_other_charts_ignored(self):
        results = [self._result("9.9.9", name="repo/other"), self._result("0.1.0")]
        assert chart_latest_version(REF, results) == ""

    def test_no_results(self):
        assert chart_latest_version(REF, []) == ""


# ═══════════════════════════════════════════════════════════════════
#  2. CACHE
# ═══════════════════════════════════════════════════════════════════


class TestChartImageCache:
    def test_miss_is_none(self):
        assert ChartImageCache().get(REF) is None

    def test_empty_string_is_a_hit(self):
        cache = ChartImageCache()
        cache.put_if_absent(REF, "")
        assert cache.get(REF) == ""
        assert REF in cache

    def test_first_writer_wins(self):
        cache = ChartImageCache()
        assert cache.put_if_absent(REF, "a") == "a"
        assert cache.put_if_absent(REF, "b") == "a"
        assert cache.get(REF) == "a"

    def test_store_overwrites(self):
        cache = ChartImageCache()
        cache.put_if_absent(REF, "a")
        cache.store(REF, "b")
        assert cache.get(REF) == "b"
        assert len(cache) == 1

    def test_concurrent_inserts_agree(self):
        cache = ChartImageCache()
        barrier = threading.Barrier(16)
        results = []
        lock = threading.Lock()

        def insert(i):
            barrier.wait()
            value = cache.put_if_absent(REF, f"image-{i}")
            with lock:
                results.append(value)

        threads = [threading.Thread(target=insert, args=(i,)) for i in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(results)) == 1
        assert cache.get(REF) == results[0]


# ═══════════════════════════════════════════════════════════════════
#  3. VALUES DECODING
# ═══════════════════════════════════════════════════════════════════


class TestImageRepositoryFromValues:
    def test_yaml(self):
        doc = b"image:\n  repository: myrepo.com/my-chart\n  tag: latest\n"
        assert image_repository_from_values(doc) == "myrepo.com/my-chart"

    def test_json(self):
        assert image_repository_from_values('{"image": {"repository": "r/x"}}') == "r/x"

    def test_missing_field(self):
        assert image_repository_from_values(b"replicaCount: 1\n") == ""
        assert image_repository_from_values(b"image: nginx\n") == ""

    def test_empty_document(self):
        assert image_repository_from_values(b"") == ""

    def test_not_a_mapping(self):
        with pytest.raises(ChartValuesDecodeError):
            image_repository_from_values(b"- a\n- b\n")

    def test_invalid_yaml(self):
        with pytest.raises(ChartValuesDecodeError):
            image_repository_from_values(b"image: [unclosed\n")


# ═══════════════════════════════════════════════════════════════════
#  4. RESOLVER
# ═══════════════════════════════════════════════════════════════════


class TestChartImageResolver:
    def test_resolves_and_caches(self, values_provider, registry):
        resolver = ChartImageResolver(values_provider, registry=registry)
        assert resolver.resolve_image_repository(REF) == "registry.example.com/org/api"
        assert resolver.resolve_image_repository(REF) == "registry.example.com/org/api"
        assert values_provider.call_count == 1
        assert resolver.cache.get(REF) == "registry.example.com/org/api"

    def test_provider_receives_name_and_pinned_version(self, values_provider):
        ChartImageResolver(values_provider).resolve_image_repository(REF)
        assert values_provider.call_log == [("repo/my-chart", "0.1.0")]

    def test_unpinned_reference(self, values_provider):
        ChartImageResolver(values_provider).resolve_image_repository("repo/my-chart")
        assert values_provider.call_log == [("repo/my-chart", "")]

    def test_preseeded_cache_skips_provider(self):
        provider = MockValuesProvider()
        cache = ChartImageCache()
        cache.store(REF, "myrepo.com/my-chart")
        resolver = ChartImageResolver(provider, cache)
        assert resolver.resolve_image_repository(REF) == "myrepo.com/my-chart"
        assert provider.call_count == 0

    def test_missing_repository_cached_as_empty(self):
        provider = MockValuesProvider({"repo/my-chart": {"replicaCount": 1}})
        resolver = ChartImageResolver(provider)
        assert resolver.resolve_image_repository(REF) == ""
        assert resolver.resolve_image_repository(REF) == ""
        assert provider.call_count == 1

    def test_provider_failure_not_cached(self, values_provider):
        values_provider.set_failure("helm exploded")
        resolver = ChartImageResolver(values_provider)
        with pytest.raises(ChartValuesError, match="helm exploded"):
            resolver.resolve_image_repository(REF)
        assert REF not in resolver.cache

    def test_decode_failure_not_cached(self):
        provider = MockValuesProvider({"repo/my-chart": b"- not\n- a mapping\n"})
        resolver = ChartImageResolver(provider)
        for _ in range(2):
            with pytest.raises(ChartValuesDecodeError):
                resolver.resolve_image_repository(REF)
        assert provider.call_count == 2
        assert len(resolver.cache) == 0

    def test_recovers_after_failure(self, values_provider):
        resolver = ChartImageResolver(values_provider)
        values_provider._failure = "down"
        with pytest.raises(ChartValuesError):
            resolver.resolve_image_repository(REF)
        values_provider._failure = None
        assert resolver.resolve_image_repository(REF) == "registry.example.com/org/api"

    def test_metrics(self, values_provider, registry):
        resolver = ChartImageResolver(values_provider, registry=registry)
        resolver.resolve_image_repository(REF)
        resolver.resolve_image_repository(REF)
        resolver.resolve_image_repository(REF)
        assert registry.counter("chart_image.cache_miss").value == 1
        assert registry.counter("chart_image.cache_hit").value == 2
        assert registry.gauge("chart_image.cache_size").value == 1
