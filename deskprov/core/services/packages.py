"""
Package installer — make sure the host tools a run needs are present.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from deskprov.adapters.registry import AdapterRegistry
from deskprov.core.errors import InstallFailure

logger = logging.getLogger(__name__)


class PackageInstaller:
    """Installs missing Debian packages through the ``apt`` adapter."""

    def __init__(self, registry: AdapterRegistry):
        self._registry = registry

    def missing(self, names: Iterable[str]) -> list[str]:
        """Names from ``names`` that dpkg does not report as installed."""
        missing = []
        for name in dict.fromkeys(names):
            receipt = self._registry.run(
                "apt", f"packages:status:{name}", step="packages",
                operation="status", package=name,
            )
            if receipt.failed:
                raise InstallFailure(f"Cannot query package '{name}': {receipt.error}")
            if receipt.metadata.get("installed") is False:
                logger.info("🚫 %s is missing", name)
                missing.append(name)
            else:
                logger.info("✅ %s is already installed", name)
        return missing

    def ensure_installed(self, names: Iterable[str]) -> list[str]:
        """Install whichever of ``names`` are missing.

        Returns:
            The packages that were installed (empty when all present).

        Raises:
            InstallFailure: Query, privilege escalation or install failed.
        """
        missing = self.missing(names)
        if not missing:
            logger.info("All required packages are present")
            return []

        logger.info("Installing missing packages: %s", ", ".join(missing))

        receipt = self._registry.run("apt", "packages:update", step="packages", operation="update")
        if receipt.failed:
            raise InstallFailure(f"apt-get update failed: {receipt.error}")

        receipt = self._registry.run(
            "apt", "packages:install", step="packages",
            operation="install", packages=missing,
        )
        if receipt.failed:
            raise InstallFailure(f"Installing {', '.join(missing)} failed: {receipt.error}")

        return missing
