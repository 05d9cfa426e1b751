"""HTTP webhook sender — JSON POST with ``urllib.request``.
"""

from __future__ import annotations

import json
import logging
import urllib.request
from typing import Any

from release_train import __version__
from release_train.adapters.base import WebHookSender

logger = logging.getLogger(__name__)


class HttpWebHookSender(WebHookSender):
    """POSTs webhook payloads; non-2xx responses raise ``HTTPError``."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    def send(self, url: str, payload: dict[str, Any]) -> None:
        body = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(
            url,
            data=body,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "User-Agent": f"release-train/{__version__}",
            },
        )
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:
            logger.debug("POST %s → %s", url, resp.getcode())
