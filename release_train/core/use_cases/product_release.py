"""
Product release use case — what the product-version handlers call.

Handlers parse the request, then delegate here.  This layer wires the
engine pieces together:

    listing   → promotion decider (+ chart latest version)
    mutation  → lock gate (+ release validation on create)
    creation  → release webhook notifier

Errors follow core.errors: store failures propagate as UpstreamError,
refusals as PolicyViolation (handlers map them to 4xx).
"""

from __future__ import annotations

import logging
from typing import Iterable

from release_train.adapters.authorization import RoleAuthorizer
from release_train.adapters.base import ProductStore, WebHookSender, WebHookStore
from release_train.adapters.webhook import HttpWebHookSender
from release_train.core.config.loader import EngineSettings
from release_train.core.errors import ReleaseValidationError, UpstreamError
from release_train.core.models.release import (
    ChartSearchResult,
    Principal,
    ProductVersion,
    ProductVersionService,
    ServiceReleaseContext,
)
from release_train.core.observability.metrics import MetricsRegistry
from release_train.core.services.chart_image import chart_latest_version
from release_train.core.services.lock_gate import ProductVersionLockGate
from release_train.core.services.promotion import PromotionDecider
from release_train.core.services.versioning import is_different, validate_version
from release_train.core.services.webhooks import GLOBAL_ENVIRONMENT_ID, ReleaseWebhookNotifier

logger = logging.getLogger(__name__)


def service_changed(old: ProductVersionService, new: ProductVersionService) -> bool:
    """Whether a service row differs in chart, tag or notes."""
    return is_different(
        old.service_name == new.service_name,
        old.docker_image_tag == new.docker_image_tag,
        old.notes == new.notes,
    )


class ProductReleaseService:
    """Product-version and product-version-service operations."""

    def __init__(
        self,
        products: ProductStore,
        decider: PromotionDecider,
        lock_gate: ProductVersionLockGate,
        notifier: ReleaseWebhookNotifier | None = None,
    ) -> None:
        self.products = products
        self.decider = decider
        self.lock_gate = lock_gate
        self.notifier = notifier

    # ── Listing ─────────────────────────────────────────────────

    def list_product_version_services(
        self,
        product_version_id: int,
        chart_search: Iterable[ChartSearchResult] | None = None,
    ) -> list[ProductVersionService]:
        """Services of a product version, annotated with newer versions.

        ``latest_version`` is the promotable image tag and
        ``chart_latest_version`` the newest chart in ``chart_search``.
        A registry or values failure for one service is logged and
        leaves its ``latest_version`` empty.
        """
        product_version = self.products.get_product_version(product_version_id)
        services = self.products.list_product_version_services(product_version_id)
        search_results = list(chart_search) if chart_search is not None else []

        annotated = []
        for service in services:
            context = ServiceReleaseContext.for_service(service, product_version)
            try:
                latest = self.decider.decide(context)
            except UpstreamError as e:
                logger.warning("Cannot check new version of %s: %s", service.service_name, e)
                latest = ""

            update = {"latest_version": latest}
            if search_results:
                update["chart_latest_version"] = chart_latest_version(service.service_name, search_results)
            annotated.append(service.model_copy(update=update))

        return annotated

    # ── Service mutation (lock-gated) ───────────────────────────

    def create_product_version_service(self, service: ProductVersionService) -> int:
        """Add a service to an unlocked product version.

        When the product validates releases, the service tag must be on
        the product version's major line.

        Raises:
            ProductVersionLockedError: The product version is locked.
            ReleaseValidationError: The tag is not compatible.
        """
        product_version = self.products.get_product_version(service.product_version_id)
        self.lock_gate.ensure_unlocked(product_version)

        product = self.products.find_product_by_id(product_version.product_id)
        if product.validate_releases and not validate_version(
            service.docker_image_tag, product_version.version,
        ):
            raise ReleaseValidationError(service.docker_image_tag, product_version.version)

        service_id = self.products.create_product_version_service(service)
        logger.info(
            "Added %s (%s) to product version %d",
            service.service_name,
            service.docker_image_tag,
            product_version.id,
        )
        return service_id

    def edit_product_version_service(self, service: ProductVersionService) -> None:
        """Edit a service row.

        Both the product version that owns the stored row and the one the
        edit moves it to must be unlocked.
        """
        stored = self.products.get_product_version_service(service.id)
        self.lock_gate.ensure_unlocked(self.products.get_product_version(stored.product_version_id))
        if service.product_version_id != stored.product_version_id:
            self.lock_gate.ensure_unlocked(self.products.get_product_version(service.product_version_id))
        self.products.edit_product_version_service(service)

    def delete_product_version_service(self, service_id: int) -> None:
        service = self.products.get_product_version_service(service_id)
        product_version = self.products.get_product_version(service.product_version_id)
        self.lock_gate.ensure_unlocked(product_version)
        self.products.delete_product_version_service(service_id)

    # ── Product versions ────────────────────────────────────────

    def lock_product_version(self, principal: Principal, product_version_id: int) -> ProductVersion:
        product_version = self.products.get_product_version(product_version_id)
        locked = self.lock_gate.lock(product_version, principal)
        self.products.edit_product_version(locked)
        return locked

    def unlock_product_version(self, principal: Principal, product_version_id: int) -> ProductVersion:
        product_version = self.products.get_product_version(product_version_id)
        unlocked = self.lock_gate.unlock(product_version, principal)
        self.products.edit_product_version(unlocked)
        return unlocked

    def create_product_version(self, product_version: ProductVersion) -> int:
        """Create a product version and announce it to release webhooks."""
        product_version_id = self.products.create_product_version_copying(product_version)
        logger.info(
            "Created product version %s (id=%d) for product %d",
            product_version.version,
            product_version_id,
            product_version.product_id,
        )
        if self.notifier is not None:
            self.notifier.notify_new_release(
                GLOBAL_ENVIRONMENT_ID, product_version.version, product_version.product_id,
            )
        return product_version_id

    def delete_product_version(self, product_version_id: int) -> None:
        """Delete an unlocked product version together with its services."""
        self.lock_gate.ensure_unlocked(self.products.get_product_version(product_version_id))
        for service in self.products.list_product_version_services(product_version_id):
            self.products.delete_product_version_service(service.id)
        self.products.delete_product_version(product_version_id)


# ── Wiring from settings ────────────────────────────────────────


def build_lock_gate(settings: EngineSettings) -> ProductVersionLockGate:
    """Lock gate that admits ``authorization.admin_role`` holders."""
    return ProductVersionLockGate(RoleAuthorizer(settings.authorization.admin_role))


def build_notifier(
    settings: EngineSettings,
    webhooks: WebHookStore,
    products: ProductStore,
    *,
    sender: WebHookSender | None = None,
    registry: MetricsRegistry | None = None,
) -> ReleaseWebhookNotifier:
    """Release notifier using the ``webhooks`` section of release.yml."""
    if sender is None:
        sender = HttpWebHookSender(timeout=settings.webhooks.timeout)
    return ReleaseWebhookNotifier(
        webhooks,
        products,
        sender,
        max_workers=settings.webhooks.max_workers,
        registry=registry,
    )


def build_product_release_service(
    settings: EngineSettings,
    products: ProductStore,
    webhooks: WebHookStore,
    decider: PromotionDecider,
    *,
    sender: WebHookSender | None = None,
    registry: MetricsRegistry | None = None,
) -> ProductReleaseService:
    """Wire a ``ProductReleaseService`` from settings and the stores."""
    return ProductReleaseService(
        products,
        decider,
        build_lock_gate(settings),
        build_notifier(settings, webhooks, products, sender=sender, registry=registry),
    )
