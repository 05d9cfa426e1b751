"""
Release webhook notifier.

After a new product version is created, every webhook registered for
``HOOK_NEW_RELEASE`` receives a POST with the product name, release
name and environment id.

Notification is best effort.  A failed lookup, a missing product or an
unreachable endpoint is logged and dropped — it must never fail the
release creation that triggered it.  Deliveries fan out on a thread
pool; one slow or failing hook does not hold up the others.

Hooks are always looked up under the global environment (-1): new
releases are broadcast, not scoped to the releasing environment.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from release_train.adapters.base import ProductStore, WebHookSender, WebHookStore
from release_train.core.models.release import WebHook
from release_train.core.observability.metrics import MetricsRegistry, metrics as default_metrics

logger = logging.getLogger(__name__)

HOOK_NEW_RELEASE = "HOOK_NEW_RELEASE"
GLOBAL_ENVIRONMENT_ID = -1


class ReleaseWebhookNotifier:
    """Fires ``HOOK_NEW_RELEASE`` webhooks."""

    def __init__(
        self,
        webhooks: WebHookStore,
        products: ProductStore,
        sender: WebHookSender,
        *,
        max_workers: int = 8,
        registry: MetricsRegistry | None = None,
    ) -> None:
        self.webhooks = webhooks
        self.products = products
        self.sender = sender
        self.max_workers = max_workers
        self._metrics = registry or default_metrics

    def notify_new_release(self, environment_id: int, release_name: str, product_id: int) -> None:
        """Notify every new-release hook.  Never raises."""
        try:
            hooks = self.webhooks.list_by_environment_and_type(GLOBAL_ENVIRONMENT_ID, HOOK_NEW_RELEASE)
        except Exception as e:
            logger.error("Cannot list %s webhooks: %s", HOOK_NEW_RELEASE, e)
            return

        try:
            product = self.products.find_product_by_id(product_id)
        except Exception as e:
            logger.error("Cannot resolve product %d for release webhook: %s", product_id, e)
            return

        if not hooks:
            logger.debug("No %s webhooks registered", HOOK_NEW_RELEASE)
            return

        payload: dict[str, Any] = {
            "productName": product.name,
            "releaseName": release_name,
            "environmentID": environment_id,
        }

        workers = min(self.max_workers, len(hooks))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="webhook") as pool:
            futures = {pool.submit(self._deliver, hook, payload): hook for hook in hooks}
            for future in as_completed(futures):
                future.result()

    def _deliver(self, hook: WebHook, payload: dict[str, Any]) -> bool:
        try:
            self.sender.send(hook.url, payload)
        except Exception as e:
            # Any sender failure stays local to this hook.
            logger.warning("Webhook %r (%s) failed: %s", hook.name, hook.url, e)
            self._metrics.counter("webhook.failed").inc()
            return False
        logger.info("Webhook %r notified of release %s", hook.name, payload["releaseName"])
        self._metrics.counter("webhook.delivered").inc()
        return True
