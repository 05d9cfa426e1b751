"""
Domain models — version tokens and release-train entities.

All models are re-exported here for convenient access:

    from release_train.core.models import VersionToken, ProductVersion, TagInfo
"""

from release_train.core.models.release import (
    ChartSearchResult,
    Principal,
    Product,
    ProductVersion,
    ProductVersionService,
    ServiceReleaseContext,
    TagInfo,
    WebHook,
)
from release_train.core.models.version import SuffixKind, VersionToken

__all__ = [
    # release.py
    "ChartSearchResult",
    "Principal",
    "Product",
    "ProductVersion",
    "ProductVersionService",
    "ServiceReleaseContext",
    # version.py
    "SuffixKind",
    "TagInfo",
    "VersionToken",
    "WebHook",
]
