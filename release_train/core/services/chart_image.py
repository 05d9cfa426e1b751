"""
Chart → image resolution with a shared cache.

A chart reference looks like ``repo/chart - 0.1.0`` (name, then the
pinned chart version).  To scan a registry for newer tags we need the
image repository the chart deploys, which lives in the chart's default
values under ``image.repository``.  Fetching values means a Helm call,
so results are memoized in a ``ChartImageCache``.

Cache rules:
    - An empty string is a valid cached value: the chart has no
      identifiable image and promotion checks are skipped for it.
    - Provider and decode failures are NOT cached; the next call retries.
    - Entries are never evicted; the set of charts is small and bounded.

Thread safety
─────────────
Reads are plain dict lookups.  Inserts take a per-key lock (created
under a short guard lock) so that unrelated charts never wait on each
other, and the first writer for a key wins.  Two requests missing the
same chart at once may both call the values provider; that is redundant
but harmless.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Iterable

import yaml

from release_train.adapters.base import ChartValuesProvider
from release_train.core.errors import ChartValuesDecodeError
from release_train.core.models.release import ChartSearchResult
from release_train.core.observability.metrics import MetricsRegistry, metrics as default_metrics

logger = logging.getLogger(__name__)

CHART_VERSION_SEPARATOR = " - "

_DIGITS = re.compile(r"\d+")


# ── Chart reference helpers ─────────────────────────────────────


def split_chart_name(chart_reference: str) -> str:
    """``repo/chart - 0.1.0`` → ``repo/chart``."""
    return chart_reference.partition(CHART_VERSION_SEPARATOR)[0].strip()


def split_chart_version(chart_reference: str) -> str:
    """``repo/chart - 0.1.0`` → ``0.1.0``; empty when no version is pinned."""
    head, sep, tail = chart_reference.rpartition(CHART_VERSION_SEPARATOR)
    return tail.strip() if sep else ""


def split_chart_repo(chart_reference: str) -> str:
    """``repo/chart - 0.1.0`` → ``repo``; empty for a bare chart name."""
    repo, sep, _ = split_chart_name(chart_reference).partition("/")
    return repo if sep else ""


def _chart_version_key(version: str) -> tuple[int, ...]:
    return tuple(int(d) for d in _DIGITS.findall(version.partition("-")[0]))


def chart_latest_version(
    chart_reference: str,
    search_results: Iterable[ChartSearchResult],
) -> str:
    """Newest chart version newer than the pinned one, or ``""``.

    Only results whose name matches the referenced chart are considered.
    """
    name = split_chart_name(chart_reference)
    pinned = _chart_version_key(split_chart_version(chart_reference))

    newest: ChartSearchResult | None = None
    for result in search_results:
        if result.name != name:
            continue
        if newest is None or _chart_version_key(result.chart_version) > _chart_version_key(newest.chart_version):
            newest = result

    if newest is None or _chart_version_key(newest.chart_version) <= pinned:
        return ""
    return newest.chart_version


# ── Cache ───────────────────────────────────────────────────────


class ChartImageCache:
    """Concurrent ``chart_reference → image_repository`` map.

    One instance per process in production; tests inject a fresh one.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _key_lock(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def get(self, chart_reference: str) -> str | None:
        """Cached image repository, or None on a miss."""
        return self._entries.get(chart_reference)

    def put_if_absent(self, chart_reference: str, image_repository: str) -> str:
        """Insert unless present; returns the value that ends up cached."""
        existing = self._entries.get(chart_reference)
        if existing is not None:
            return existing
        with self._key_lock(chart_reference):
            existing = self._entries.get(chart_reference)
            if existing is None:
                self._entries[chart_reference] = image_repository
                return image_repository
            return existing

    def store(self, chart_reference: str, image_repository: str) -> None:
        """Insert or overwrite (used to pre-seed known charts)."""
        with self._key_lock(chart_reference):
            self._entries[chart_reference] = image_repository

    def __contains__(self, chart_reference: object) -> bool:
        return chart_reference in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# ── Resolver ────────────────────────────────────────────────────


def image_repository_from_values(document: bytes | str) -> str:
    """Read ``image.repository`` from a values document.

    Returns ``""`` when the field is absent.

    Raises:
        ChartValuesDecodeError: If the document is not a YAML/JSON mapping.
    """
    try:
        values = yaml.safe_load(document)
    except yaml.YAMLError as e:
        raise ChartValuesDecodeError(f"Cannot decode chart values: {e}") from e

    if values is None:
        return ""
    if not isinstance(values, dict):
        raise ChartValuesDecodeError(
            f"Chart values must be a mapping, got {type(values).__name__}"
        )

    image = values.get("image")
    if not isinstance(image, dict):
        return ""
    repository = image.get("repository")
    return repository if isinstance(repository, str) else ""


class ChartImageResolver:
    """Maps chart references to image repositories, memoized."""

    def __init__(
        self,
        values_provider: ChartValuesProvider,
        cache: ChartImageCache | None = None,
        registry: MetricsRegistry | None = None,
    ) -> None:
        self.values_provider = values_provider
        self.cache = cache if cache is not None else ChartImageCache()
        self._metrics = registry or default_metrics

    def resolve_image_repository(self, chart_reference: str) -> str:
        """Image repository for ``chart_reference`` (``""`` if none).

        Raises:
            ChartValuesError: The provider failed (not cached).
            ChartValuesDecodeError: The values are not a mapping (not cached).
        """
        cached = self.cache.get(chart_reference)
        if cached is not None:
            self._metrics.counter("chart_image.cache_hit").inc()
            return cached

        self._metrics.counter("chart_image.cache_miss").inc()
        chart_name = split_chart_name(chart_reference)
        chart_version = split_chart_version(chart_reference)
        logger.debug("Fetching values for %s (version=%r)", chart_name, chart_version)

        document = self.values_provider.get_values(chart_name, chart_version)
        repository = image_repository_from_values(document)

        if not repository:
            logger.info("Chart %s has no image.repository — promotion checks skipped", chart_reference)

        repository = self.cache.put_if_absent(chart_reference, repository)
        self._metrics.gauge("chart_image.cache_size").set(len(self.cache))
        return repository
