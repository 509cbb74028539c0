"""
Asset fetcher — clone a theme/icon/font repository and place its files.

An asset whose destination directory already exists is considered
installed and left alone; nothing checks the files inside.
"""

from __future__ import annotations

import logging
import re
import tempfile
from pathlib import Path

from deskprov.adapters.registry import AdapterRegistry
from deskprov.core.context import expand_path
from deskprov.core.errors import FetchFailure
from deskprov.core.models.action import Receipt
from deskprov.core.models.profile import AssetSpec

logger = logging.getLogger(__name__)


def _slug(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "-", name).strip("-").lower() or "asset"


class AssetFetcher:
    """Places assets with the ``git`` and ``filesystem`` adapters."""

    def __init__(self, registry: AdapterRegistry):
        self._registry = registry

    def clone_and_extract(self, asset: AssetSpec, workdir: Path) -> Path:
        """Fetch ``asset`` into its destination.

        Args:
            asset: What to fetch and how to place it.
            workdir: Scratch directory for the clone.

        Returns:
            The destination path.

        Raises:
            FetchFailure: Clone, copy or extraction failed, or the
                destination is still missing afterwards.
        """
        dest = expand_path(asset.dest)
        if dest.is_dir():
            logger.info("✅ %s already installed at %s", asset.name, dest)
            return dest

        slug = _slug(asset.name)
        clone_dir = workdir / slug

        logger.info("⬇️  Installing %s %s", asset.kind, asset.name)
        self._check(
            self._registry.run(
                "git", f"assets:{slug}:clone", step="assets",
                operation="clone", url=asset.url, dest=str(clone_dir),
            ),
            asset,
        )

        if asset.strategy == "source":
            receipt = self._registry.run(
                "filesystem", f"assets:{slug}:copy", step="assets",
                operation="copytree", source=str(clone_dir / asset.source), path=str(dest),
            )
        elif asset.strategy == "archive":
            receipt = self._registry.run(
                "filesystem", f"assets:{slug}:extract", step="assets",
                operation="extract", source=str(clone_dir / asset.archive), path=str(dest.parent),
            )
        else:
            receipt = self._registry.run(
                "filesystem", f"assets:{slug}:copy", step="assets",
                operation="copy_glob", source=str(clone_dir), pattern=asset.pattern, path=str(dest),
            )
        self._check(receipt, asset)

        if self._registry.simulated:
            return dest

        if not dest.is_dir():
            raise FetchFailure(f"{asset.name}: expected {dest} after placement, but it is missing")

        logger.info("Installed %s to %s", asset.name, dest)
        return dest

    def fetch_all(self, assets: list[AssetSpec]) -> list[Path]:
        """Fetch every asset using one scratch directory, removed afterwards."""
        if not assets:
            return []
        with tempfile.TemporaryDirectory(prefix="deskprov-") as scratch:
            return [self.clone_and_extract(asset, Path(scratch)) for asset in assets]

    def _check(self, receipt: Receipt, asset: AssetSpec) -> None:
        if receipt.failed:
            raise FetchFailure(f"{asset.name}: {receipt.error}")
