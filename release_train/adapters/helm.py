"""Helm values provider — ``helm show values`` for a chart reference.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from release_train.adapters.base import ChartValuesProvider
from release_train.core.errors import ChartValuesError

logger = logging.getLogger(__name__)


def _helm_available(binary: str = "helm") -> bool:
    """Check if the helm CLI is on PATH."""
    return shutil.which(binary) is not None


class HelmValuesProvider(ChartValuesProvider):
    """Reads default chart values through the helm CLI.

    The chart must be resolvable by the local helm client, i.e. its
    repository already added with ``helm repo add``.
    """

    def __init__(self, binary: str = "helm", timeout: float = 60.0) -> None:
        self.binary = binary
        self.timeout = timeout

    def build_command(self, chart_name: str, chart_version: str) -> list[str]:
        cmd = [self.binary, "show", "values", chart_name]
        if chart_version:
            cmd.extend(["--version", chart_version])
        return cmd

    def get_values(self, chart_name: str, chart_version: str) -> bytes:
        if not _helm_available(self.binary):
            raise ChartValuesError(f"{self.binary} CLI not found")

        cmd = self.build_command(chart_name, chart_version)
        logger.debug("Running %s", " ".join(cmd))
        try:
            r = subprocess.run(cmd, capture_output=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise ChartValuesError(f"helm show values timed out for {chart_name}") from e
        except OSError as e:
            raise ChartValuesError(f"Cannot run helm: {e}") from e

        if r.returncode != 0:
            stderr = r.stderr.decode("utf-8", errors="replace").strip()
            raise ChartValuesError(stderr or f"helm show values failed for {chart_name}")
        return r.stdout
