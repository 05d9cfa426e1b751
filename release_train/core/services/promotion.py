"""
Promotion decider — is there a newer, compatible tag for this service?

Given a service's chart, its currently deployed tag and the product
version baseline, the decider:

    1. resolves the chart's image repository (cached, see chart_image),
    2. lists every tag in the registry with its creation time,
    3. keeps the most recently created tag,
    4. accepts it only if it passes the train's compatibility gate.

"No promotable version" is a normal outcome and is returned as ``""``.
Only collaborator failures raise.

Compatibility gate
──────────────────
Normal train — the candidate must sit on the baseline's release line
(``major_version``), and either move the service to that line or carry
a strictly higher build ordinal than the deployed tag:

    baseline 19.0.1-0,    current 19.0.1-0    → 19.0.1-1 accepted
    baseline 20.2.1-RC-0, current 20.1.0-0    → 20.2.1-RC-1 accepted
    baseline 20.1.0-0,    current 20.1.0-0    → 20.1.0-0.1 rejected

Hotfix train — the candidate must share the baseline's major.minor.patch
and stay on the hotfix branch of the deployed tag, with a higher hotfix
build:

    current 20.1.1-15.5 → 20.1.1-15.6 accepted, 20.1.1-1.2 rejected
    current 20.1.1-6    → 20.1.1-6.1 accepted,  20.1.1-10 rejected
"""

from __future__ import annotations

import logging
from typing import Iterable

from release_train.adapters.base import RegistryClient
from release_train.core.models.release import ServiceReleaseContext, TagInfo
from release_train.core.observability.metrics import MetricsRegistry, metrics as default_metrics
from release_train.core.services.chart_image import ChartImageResolver
from release_train.core.services.versioning import parse_version, validate_version

logger = logging.getLogger(__name__)


def latest_tag(tags: Iterable[TagInfo]) -> TagInfo | None:
    """Most recently created tag; the first one seen wins ties."""
    latest: TagInfo | None = None
    for info in tags:
        if latest is None or info.created > latest.created:
            latest = info
    return latest


def is_promotable(
    candidate: str,
    current_service_version: str,
    product_version_baseline: str,
    is_hotfix_train: bool = False,
) -> bool:
    """Whether ``candidate`` may replace the deployed tag."""
    if candidate == current_service_version:
        return False

    cand = parse_version(candidate)
    current = parse_version(current_service_version)

    if is_hotfix_train:
        return (
            validate_version(candidate, product_version_baseline)
            and cand.hotfix_branch == current.hotfix_branch
            and cand.hotfix_build_number > current.hotfix_build_number
        )

    baseline = parse_version(product_version_baseline)
    if cand.major_line != baseline.major_line:
        return False
    if cand.major_line != current.major_line:
        return True
    return cand.minor_ordinal > current.minor_ordinal


class PromotionDecider:
    """Finds the promotable version of a service in its image registry."""

    def __init__(
        self,
        resolver: ChartImageResolver,
        registry_client: RegistryClient,
        registry: MetricsRegistry | None = None,
    ) -> None:
        self.resolver = resolver
        self.registry_client = registry_client
        self._metrics = registry or default_metrics

    def find_promotable_version(
        self,
        chart_reference: str,
        current_service_version: str,
        product_version_baseline: str,
        is_hotfix_train: bool = False,
    ) -> str:
        """Promotable tag for the service, or ``""`` when there is none.

        Raises:
            ChartValuesError / ChartValuesDecodeError: Image resolution failed.
            RegistryError: The registry could not list tags.
        """
        image_repository = self.resolver.resolve_image_repository(chart_reference)
        if not image_repository:
            self._metrics.counter("promotion.skipped").inc()
            return ""

        with self._metrics.timer("promotion.registry_scan_ms"):
            tags = self.registry_client.list_tags_with_creation_date(image_repository)

        latest = latest_tag(tags)
        if latest is None:
            logger.debug("No tags in %s", image_repository)
            self._metrics.counter("promotion.rejected").inc()
            return ""

        candidate = latest.tag
        if not is_promotable(
            candidate,
            current_service_version,
            product_version_baseline,
            is_hotfix_train,
        ):
            logger.debug(
                "Latest tag %s of %s not promotable (current=%s, baseline=%s, hotfix=%s)",
                candidate,
                image_repository,
                current_service_version,
                product_version_baseline,
                is_hotfix_train,
            )
            self._metrics.counter("promotion.rejected").inc()
            return ""

        logger.info(
            "Promotable version for %s: %s → %s",
            chart_reference,
            current_service_version,
            candidate,
        )
        self._metrics.counter("promotion.accepted").inc()
        return candidate

    def decide(self, context: ServiceReleaseContext) -> str:
        """``find_promotable_version`` for a prepared context."""
        return self.find_promotable_version(
            context.chart_reference,
            context.current_service_version,
            context.product_version_baseline,
            context.is_hotfix_train,
        )
