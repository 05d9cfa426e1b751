"""
Tests for version parsing and comparison.

Covers:
  - parse_version: suffix shapes (none / build / RC / hotfix), malformed tags
  - major_version / minor_version accessors
  - hotfix_major_version / hotfix_minor_version accessors
  - validate_version (major line comparison, symmetry)
  - is_different
"""

import itertools

import pytest

from release_train.core.models.version import SuffixKind
from release_train.core.services.versioning import (
    hotfix_major_version,
    hotfix_minor_version,
    is_different,
    major_version,
    minor_version,
    parse_version,
    validate_version,
)


# ═══════════════════════════════════════════════════════════════════
#  1. PARSING
# ═══════════════════════════════════════════════════════════════════


class TestParseVersion:
    def test_plain(self):
        t = parse_version("20.1.1")
        assert t.suffix_kind == SuffixKind.NONE
        assert (t.major, t.minor, t.patch) == (20, 1, 1)
        assert not t.has_suffix

    def test_build(self):
        t = parse_version("20.1.1-15")
        assert t.suffix_kind == SuffixKind.BUILD
        assert t.build_number == 15
        assert t.hotfix_build_number == -1

    def test_release_candidate(self):
        t = parse_version("20.1.1-RC-3")
        assert t.suffix_kind == SuffixKind.RELEASE_CANDIDATE
        assert t.build_number == 3

    def test_hotfix(self):
        t = parse_version("20.1.1-15.6")
        assert t.suffix_kind == SuffixKind.HOTFIX
        assert t.is_hotfix
        assert t.build_number == 15
        assert t.hotfix_build_number == 6
        assert t.branch_text == "15"

    def test_str_is_raw_tag(self):
        assert str(parse_version("20.1.1-RC-3")) == "20.1.1-RC-3"

    def test_same_tag_same_token(self):
        assert parse_version("19.0.1-0") is parse_version("19.0.1-0")

    @pytest.mark.parametrize("tag", ["", "latest", "v1", "1.x.3-abc", "-", "1.2.3-", "1.2.3-RC-x", "1.2.3-a.b"])
    def test_malformed_never_raises(self, tag):
        t = parse_version(tag)
        assert t.raw == tag

    def test_non_numeric_build_is_zero(self):
        t = parse_version("1.2.3-abc")
        assert t.suffix_kind == SuffixKind.BUILD
        assert t.build_number == 0


# ═══════════════════════════════════════════════════════════════════
#  2. ACCESSORS
# ═══════════════════════════════════════════════════════════════════


class TestMajorMinor:
    @pytest.mark.parametrize("tag", ["0.0.0", "1.2.3", "19.3.1", "20.10.100"])
    def test_no_suffix(self, tag):
        assert major_version(tag) == tag
        assert minor_version(tag) == 0

    @pytest.mark.parametrize("tag, expected", [
        ("20.1.1-0", "20.1.1"),
        ("20.1.1-0.1", "20.1.1-0"),
        ("20.1.1-RC-0", "20.1.1-RC"),
        ("20.1.1-15.6", "20.1.1-15"),
        ("19.0.1-1", "19.0.1"),
    ])
    def test_major_version(self, tag, expected):
        assert major_version(tag) == expected

    @pytest.mark.parametrize("tag, expected", [
        ("20.1.1-0", 0),
        ("20.1.1-0.10", 10),
        ("20.1.1-RC-01", 1),
        ("20.1.1-RC-12", 12),
        ("20.1.1-7", 7),
    ])
    def test_minor_version(self, tag, expected):
        assert minor_version(tag) == expected


class TestHotfixAccessors:
    @pytest.mark.parametrize("tag, expected", [
        ("20.1.1-0", -1),
        ("20.1.1-0.10", 10),
        ("20.1.1", -1),
        ("20.1.1-RC-1", -1),
    ])
    def test_hotfix_minor_version(self, tag, expected):
        assert hotfix_minor_version(tag) == expected

    @pytest.mark.parametrize("tag, expected", [
        ("20.1.1-15.6", "20.1.1-15"),
        ("20.1.1-0.1", "20.1.1-0"),
        ("20.1.1-6", "20.1.1-6"),
        ("20.1.1", "20.1.1"),
    ])
    def test_hotfix_major_version(self, tag, expected):
        assert hotfix_major_version(tag) == expected


# ═══════════════════════════════════════════════════════════════════
#  3. COMPARATOR
# ═══════════════════════════════════════════════════════════════════


_COMPATIBLE = [
    ("19.3.1-0", "19.3.1-1"),
    ("19.3.1-0", "19.3.1"),
    ("19.3.1", "19.3.1"),
]

_INCOMPATIBLE = [
    ("19.3.1-0", "20.3.1-1"),
    ("19.3.1-0", "19.4.1"),
    ("19.3.1", "19.3.5-1"),
    ("19.3.1", "19.3.11"),
    ("19.3.1-0", "19.33.1-0"),
    ("19.3.1-0", "19.3.11-0"),
    ("19.3.1-0", "19.33.11-0"),
    ("19.3.1.0", "1.33.11.0"),
    ("19.31", "19"),
]


class TestValidateVersion:
    @pytest.mark.parametrize("a, b", _COMPATIBLE)
    def test_compatible(self, a, b):
        assert validate_version(a, b) is True

    @pytest.mark.parametrize("a, b", _INCOMPATIBLE)
    def test_incompatible(self, a, b):
        assert validate_version(a, b) is False

    @pytest.mark.parametrize("a, b", _COMPATIBLE + _INCOMPATIBLE)
    def test_symmetric(self, a, b):
        assert validate_version(a, b) == validate_version(b, a)

    def test_string_comparison_not_numeric(self):
        assert validate_version("19.03.1", "19.3.1") is False


class TestIsDifferent:
    @pytest.mark.parametrize("x", [True, False])
    def test_all_equal(self, x):
        assert is_different(x, x, x) is False

    def test_every_mixed_combination(self):
        mixed = [c for c in itertools.product([True, False], repeat=3) if len(set(c)) > 1]
        assert len(mixed) == 6
        for combo in mixed:
            assert is_different(*combo) is True
