"""
Version parsing and comparison — the rules of the release train.

Every tag is parsed once into a ``VersionToken``; the accessors below
read the token instead of slicing strings at each call site.

Parsing is total.  A malformed tag never raises: missing or
non-numeric fields become 0 (hotfix build: -1), and the comparisons
downstream simply come out as "not compatible" / "not promotable".

    major_version("20.1.1-0")        → "20.1.1"
    major_version("20.1.1-RC-0")     → "20.1.1-RC"
    major_version("20.1.1-0.1")      → "20.1.1-0"
    minor_version("20.1.1-0.10")     → 10
    hotfix_major_version("20.1.1-0") → "20.1.1-0"
    hotfix_minor_version("20.1.1-0") → -1
"""

from __future__ import annotations

import re
from functools import lru_cache

from release_train.core.models.version import RC_MARKER, SuffixKind, VersionToken

_TRAILING_DIGITS = re.compile(r"(\d+)$")
_RC_PREFIX = f"{RC_MARKER}-"


def _to_int(text: str) -> int:
    return int(text) if text.isdigit() else 0


def _trailing_int(text: str) -> int:
    m = _TRAILING_DIGITS.search(text)
    return int(m.group(1)) if m else 0


def _split_base(base: str) -> tuple[int, int, int]:
    parts = (base.split(".") + ["", "", ""])[:3]
    return _to_int(parts[0]), _to_int(parts[1]), _to_int(parts[2])


@lru_cache(maxsize=4096)
def parse_version(tag: str) -> VersionToken:
    """Parse an image tag into a ``VersionToken``.

    The suffix shape is decided in this order: ``RC-<n>`` → release
    candidate, anything with a ``.`` → hotfix build, anything else →
    build number.
    """
    base, sep, suffix = tag.partition("-")
    major, minor, patch = _split_base(base)

    if not sep:
        return VersionToken(raw=tag, base=base, major=major, minor=minor, patch=patch)

    if suffix == RC_MARKER or suffix.startswith(_RC_PREFIX):
        return VersionToken(
            raw=tag,
            base=base,
            major=major,
            minor=minor,
            patch=patch,
            suffix_kind=SuffixKind.RELEASE_CANDIDATE,
            build_number=_trailing_int(suffix),
        )

    if "." in suffix:
        branch, _, build = suffix.rpartition(".")
        return VersionToken(
            raw=tag,
            base=base,
            major=major,
            minor=minor,
            patch=patch,
            suffix_kind=SuffixKind.HOTFIX,
            build_number=_to_int(branch),
            hotfix_build_number=_to_int(build),
            branch_text=branch,
        )

    return VersionToken(
        raw=tag,
        base=base,
        major=major,
        minor=minor,
        patch=patch,
        suffix_kind=SuffixKind.BUILD,
        build_number=_to_int(suffix),
    )


# ── Accessors ───────────────────────────────────────────────────


def major_version(tag: str) -> str:
    """Release line of a tag; the build / RC / hotfix-build number dropped."""
    return parse_version(tag).major_line


def minor_version(tag: str) -> int:
    """Trailing build ordinal of a tag; 0 when there is no suffix."""
    return parse_version(tag).minor_ordinal


def hotfix_major_version(tag: str) -> str:
    """Hotfix branch of a tag (``20.1.1-15`` for ``20.1.1-15.6``).

    Tags that are not hotfix builds are returned unchanged.
    """
    return parse_version(tag).hotfix_branch


def hotfix_minor_version(tag: str) -> int:
    """Hotfix build number, or -1 when the tag is not a hotfix build."""
    return parse_version(tag).hotfix_build_number


# ── Comparator ──────────────────────────────────────────────────


def validate_version(service_version: str, product_version: str) -> bool:
    """Whether a service tag belongs to a product version's major line.

    Only the text before the first ``-`` is compared, as strings.
    """
    return parse_version(service_version).base == parse_version(product_version).base


def is_different(a: bool, b: bool, c: bool) -> bool:
    """True unless all three flags agree."""
    return not (a == b == c)
