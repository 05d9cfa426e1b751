"""
Tests for the check use case (one promotion decision with captured errors).
"""

from pathlib import Path

import pytest

from release_train.adapters.mock import MockRegistryClient, MockValuesProvider
from release_train.core.config.loader import ConfigError
from release_train.core.models.release import ServiceReleaseContext
from release_train.core.use_cases.check import load_tags_file, run_check

REF = "repo/my-chart - 0.1.0"
IMAGE = "registry.example.com/org/api"


def _context(current="19.0.1-0", baseline="19.0.1-0", hotfix=False):
    return ServiceReleaseContext(
        chart_reference=REF,
        current_service_version=current,
        product_version_baseline=baseline,
        is_hotfix_train=hotfix,
    )


class TestRunCheck:
    def test_with_collaborators(self, values_provider, make_tags):
        client = MockRegistryClient({IMAGE: make_tags("19.0.1-1")})
        result = run_check(_context(), values_provider=values_provider, registry_client=client)
        assert result.error is None
        assert result.has_update
        assert result.promotable_version == "19.0.1-1"
        assert result.image_repository == IMAGE
        counters = {c["name"]: c["value"] for c in result.metrics["counters"]}
        assert counters["chart_image.cache_miss"] == 1
        assert counters["promotion.accepted"] == 1

    def test_image_skips_values_provider(self, make_tags):
        provider = MockValuesProvider()
        client = MockRegistryClient({"other/api": make_tags("19.0.1-1")})
        result = run_check(_context(), image_repository="other/api", values_provider=provider, registry_client=client)
        assert result.promotable_version == "19.0.1-1"
        assert provider.call_count == 0

    def test_upstream_error_captured(self, values_provider):
        client = MockRegistryClient()
        client.set_failure("registry down")
        result = run_check(_context(), values_provider=values_provider, registry_client=client)
        assert result.error == "registry down"
        assert not result.has_update
        assert result.to_dict()["error"] == "registry down"

    def test_to_dict(self, values_provider):
        result = run_check(_context(hotfix=True), values_provider=values_provider, registry_client=MockRegistryClient())
        data = result.to_dict()
        assert data["chart"] == REF
        assert data["hotfix"] is True
        assert data["promotable_version"] == ""
        assert "error" not in data


class TestLoadTagsFile:
    def test_valid(self, tmp_path: Path):
        path = tmp_path / "tags.yml"
        path.write_text(
            "image: r/api\ntags:\n  - tag: '1.0.0-1'\n    created: 2020-05-01T10:00:00Z\n",
            encoding="utf-8",
        )
        image, client = load_tags_file(path)
        assert image == "r/api"
        assert [t.tag for t in client.list_tags_with_creation_date("r/api")] == ["1.0.0-1"]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_tags_file(tmp_path / "none.yml")

    def test_bad_entry(self, tmp_path: Path):
        path = tmp_path / "tags.yml"
        path.write_text("image: r/api\ntags:\n  - tag: x\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid tag entry"):
            load_tags_file(path)
