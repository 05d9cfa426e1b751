"""
Check use case — one promotion decision, as run from the CLI.

Builds the engine from ``EngineSettings`` (Helm values provider +
registry v2 client) unless collaborators are passed in, and captures
the outcome in a ``CheckResult`` instead of raising, so the CLI can
print either way.

Offline mode: a tags file replaces the registry.

    image: registry.example.com/org/api
    tags:
      - tag: 19.0.1-1
        created: 2019-01-01T00:00:00Z
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from release_train.adapters.base import ChartValuesProvider, RegistryClient
from release_train.adapters.helm import HelmValuesProvider
from release_train.adapters.mock import MockRegistryClient
from release_train.adapters.registry import DockerRegistryClient
from release_train.core.config.loader import ConfigError, EngineSettings
from release_train.core.errors import ReleaseTrainError
from release_train.core.models.release import ServiceReleaseContext, TagInfo
from release_train.core.observability.metrics import MetricsRegistry
from release_train.core.services.chart_image import ChartImageCache, ChartImageResolver
from release_train.core.services.promotion import PromotionDecider

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Outcome of a single promotion check."""

    context: ServiceReleaseContext
    image_repository: str = ""
    promotable_version: str = ""
    error: str | None = None
    metrics: dict[str, Any] = field(default_factory=dict)

    @property
    def has_update(self) -> bool:
        return bool(self.promotable_version)

    def to_dict(self) -> dict:
        result: dict = {
            "chart": self.context.chart_reference,
            "current": self.context.current_service_version,
            "baseline": self.context.product_version_baseline,
            "hotfix": self.context.is_hotfix_train,
            "image_repository": self.image_repository,
            "promotable_version": self.promotable_version,
        }
        if self.error:
            result["error"] = self.error
        if self.metrics:
            result["metrics"] = self.metrics
        return result


def load_tags_file(path: Path) -> tuple[str, MockRegistryClient]:
    """Read an offline tags file into (image repository, registry double).

    Raises:
        ConfigError: If the file is missing or malformed.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("image"), str):
        raise ConfigError(f"{path} must be a mapping with an 'image' key")

    image = data["image"]
    try:
        tags = [TagInfo.model_validate(t) for t in data.get("tags") or []]
    except ValidationError as e:
        raise ConfigError(f"Invalid tag entry in {path}: {e}") from e

    return image, MockRegistryClient({image: tags})


def build_decider(
    settings: EngineSettings,
    *,
    cache: ChartImageCache | None = None,
    values_provider: ChartValuesProvider | None = None,
    registry_client: RegistryClient | None = None,
    registry: MetricsRegistry | None = None,
) -> PromotionDecider:
    """Wire a ``PromotionDecider`` from settings and optional overrides."""
    if values_provider is None:
        values_provider = HelmValuesProvider(settings.helm.binary, timeout=settings.helm.timeout)
    if registry_client is None:
        registry_client = DockerRegistryClient(
            settings.registry.url,
            username=settings.registry.username,
            password=settings.registry.password,
            timeout=settings.registry.timeout,
            verify_ssl=settings.registry.verify_ssl,
        )
    resolver = ChartImageResolver(values_provider, cache, registry=registry)
    return PromotionDecider(resolver, registry_client, registry=registry)


def run_check(
    context: ServiceReleaseContext,
    settings: EngineSettings | None = None,
    *,
    image_repository: str | None = None,
    tags_file: Path | None = None,
    values_provider: ChartValuesProvider | None = None,
    registry_client: RegistryClient | None = None,
) -> CheckResult:
    """Decide whether ``context`` has a promotable version.

    ``image_repository`` pre-seeds the chart cache (no Helm call);
    ``tags_file`` replaces the registry and implies its image.
    """
    settings = settings or EngineSettings()
    result = CheckResult(context=context)
    cache = ChartImageCache()
    registry = MetricsRegistry()

    try:
        if tags_file is not None:
            file_image, registry_client = load_tags_file(tags_file)
            image_repository = image_repository or file_image
        if image_repository:
            cache.store(context.chart_reference, image_repository)

        decider = build_decider(
            settings,
            cache=cache,
            values_provider=values_provider,
            registry_client=registry_client,
            registry=registry,
        )
        result.promotable_version = decider.decide(context)
        result.image_repository = cache.get(context.chart_reference) or ""
    except (ReleaseTrainError, ConfigError) as e:
        logger.error("Promotion check failed for %s: %s", context.chart_reference, e)
        result.error = str(e)

    result.metrics = registry.to_dict()
    return result
