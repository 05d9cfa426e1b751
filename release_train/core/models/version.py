"""
VersionToken — the structured form of an image tag.

Tags follow ``MAJOR.MINOR.PATCH[-SUFFIX]`` where SUFFIX is one of:

    (absent)        20.1.1
    build number    20.1.1-7
    release cand.   20.1.1-RC-3
    hotfix build    20.1.1-15.6     (hotfix branch 15, build 6)

Tokens are produced by ``services.versioning.parse_version`` and never
fail to construct: unparseable numbers fall back to 0 (or -1 for the
hotfix build number).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class SuffixKind(StrEnum):
    """Shape of the part after the first ``-``."""

    NONE = "none"
    BUILD = "build"
    RELEASE_CANDIDATE = "rc"
    HOTFIX = "hotfix"


RC_MARKER = "RC"


@dataclass(frozen=True)
class VersionToken:
    """Parsed image tag.

    ``base`` keeps the exact text before the first ``-`` so that major
    lines are compared as strings ("19.3.1" != "19.3.11").
    ``build_number`` holds the build, RC or hotfix-branch number depending
    on ``suffix_kind``.
    """

    raw: str
    base: str
    major: int = 0
    minor: int = 0
    patch: int = 0
    suffix_kind: SuffixKind = SuffixKind.NONE
    build_number: int = 0
    hotfix_build_number: int = -1
    # hotfix branch text as written ("15" in "20.1.1-15.6")
    branch_text: str = ""

    @property
    def has_suffix(self) -> bool:
        return self.suffix_kind != SuffixKind.NONE

    @property
    def is_hotfix(self) -> bool:
        return self.suffix_kind == SuffixKind.HOTFIX

    @property
    def major_line(self) -> str:
        """Release line the tag belongs to (getMajorVersion)."""
        if self.suffix_kind == SuffixKind.RELEASE_CANDIDATE:
            return f"{self.base}-{RC_MARKER}"
        if self.suffix_kind == SuffixKind.HOTFIX:
            return f"{self.base}-{self.branch_text}"
        return self.base

    @property
    def minor_ordinal(self) -> int:
        """Trailing build ordinal (getMinorVersion); 0 without a suffix."""
        if self.suffix_kind == SuffixKind.HOTFIX:
            return self.hotfix_build_number
        return self.build_number

    @property
    def hotfix_branch(self) -> str:
        """Tag with the trailing ``.hotfixBuild`` stripped, else the raw tag."""
        if self.suffix_kind == SuffixKind.HOTFIX:
            return f"{self.base}-{self.branch_text}"
        return self.raw

    def __str__(self) -> str:
        return self.raw
