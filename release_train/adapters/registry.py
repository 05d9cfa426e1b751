"""
Docker Registry HTTP API v2 client — tags with creation dates.

The registry API has no "list tags with dates" call, so each tag costs
two more requests:

    GET /v2/<name>/tags/list              → tag names
    GET /v2/<name>/manifests/<tag>        → config blob digest
    GET /v2/<name>/blobs/<digest>         → image config, "created"

Only basic auth is supported (private registries, Harbor, Nexus).
Tags whose manifest or config cannot be read are skipped with a
warning; a failure of the tag listing itself is a ``RegistryError``.
"""

from __future__ import annotations

import base64
import json
import logging
import re
import ssl
import urllib.error
import urllib.request
from datetime import UTC, datetime
from typing import Any

from release_train import __version__
from release_train.adapters.base import RegistryClient
from release_train.core.errors import RegistryError
from release_train.core.models.release import TagInfo

logger = logging.getLogger(__name__)

_MANIFEST_TYPES = ", ".join((
    "application/vnd.docker.distribution.manifest.v2+json",
    "application/vnd.oci.image.manifest.v1+json",
))

# fromisoformat() accepts at most microseconds
_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_created(value: str) -> datetime:
    """Parse an image config ``created`` timestamp (RFC 3339, ns precision)."""
    text = _FRACTION.sub(r"\1", value.strip())
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    created = datetime.fromisoformat(text)
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return created


def split_image_repository(image_repository: str) -> tuple[str, str]:
    """``registry.example.com/org/image`` → (``registry.example.com``, ``org/image``).

    The first path component is a host only if it looks like one
    (contains ``.`` or ``:`` or is ``localhost``); otherwise the host
    is empty and the configured registry URL is used.
    """
    first, sep, rest = image_repository.partition("/")
    if sep and ("." in first or ":" in first or first == "localhost"):
        return first, rest
    return "", image_repository


class DockerRegistryClient(RegistryClient):
    """Registry v2 client built on ``urllib.request``."""

    def __init__(
        self,
        url: str = "",
        *,
        username: str = "",
        password: str = "",
        timeout: float = 15.0,
        verify_ssl: bool = True,
    ) -> None:
        self.url = url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self._ssl_context: ssl.SSLContext | None = None
        if not verify_ssl:
            self._ssl_context = ssl.create_default_context()
            self._ssl_context.check_hostname = False
            self._ssl_context.verify_mode = ssl.CERT_NONE

    def _base_url(self, host: str) -> str:
        if host:
            return f"https://{host}"
        if not self.url:
            raise RegistryError("No registry host in image repository and no registry url configured")
        return self.url

    def _get_json(self, url: str, accept: str = "application/json") -> Any:
        headers = {"Accept": accept, "User-Agent": f"release-train/{__version__}"}
        if self.username:
            token = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
            headers["Authorization"] = f"Basic {token}"
        req = urllib.request.Request(url, headers=headers)
        with urllib.request.urlopen(req, timeout=self.timeout, context=self._ssl_context) as resp:
            return json.loads(resp.read().decode("utf-8"))

    def list_tags(self, image_repository: str) -> list[str]:
        host, name = split_image_repository(image_repository)
        url = f"{self._base_url(host)}/v2/{name}/tags/list"
        try:
            data = self._get_json(url)
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise RegistryError(f"Cannot list tags of {image_repository}: {e}") from e
        if not isinstance(data, dict):
            raise RegistryError(f"Unexpected tags response for {image_repository}: {type(data).__name__}")
        return list(data.get("tags") or [])

    def tag_created(self, image_repository: str, tag: str) -> datetime:
        host, name = split_image_repository(image_repository)
        base = self._base_url(host)
        manifest = self._get_json(f"{base}/v2/{name}/manifests/{tag}", accept=_MANIFEST_TYPES)
        digest = manifest["config"]["digest"]
        config = self._get_json(f"{base}/v2/{name}/blobs/{digest}")
        return parse_created(config["created"])

    def list_tags_with_creation_date(self, image_repository: str) -> list[TagInfo]:
        result: list[TagInfo] = []
        for tag in self.list_tags(image_repository):
            try:
                created = self.tag_created(image_repository, tag)
            except (urllib.error.URLError, OSError, ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping %s:%s — cannot read creation date: %s", image_repository, tag, e)
                continue
            result.append(TagInfo(tag=tag, created=created))
        logger.debug("Registry %s: %d tags with dates", image_repository, len(result))
        return result
