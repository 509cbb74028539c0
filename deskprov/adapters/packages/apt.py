"""
APT adapter — query and install Debian packages.

Status queries use ``dpkg -s`` and need no privileges. Installs go
through ``sudo apt-get`` and share the terminal so sudo can prompt.
"""

from __future__ import annotations

import logging
import os
import shutil

from deskprov.adapters.base import Adapter, ExecutionContext
from deskprov.adapters.shell.command import run_command
from deskprov.core.models.action import Receipt

logger = logging.getLogger(__name__)

INSTALL_TIMEOUT = 1800


class AptAdapter(Adapter):
    """Debian package operations.

    Action params:
        operation (str): One of 'status', 'update', 'install'.
        package (str): Package name (status).
        packages (list[str]): Package names (install).
    """

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return shutil.which("dpkg") is not None and shutil.which("apt-get") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        valid_ops = {"status", "update", "install"}
        if operation not in valid_ops:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(valid_ops))}"

        if operation == "status" and not params.get("package"):
            return False, "Missing required param: 'package' for status operation"
        if operation == "install" and not params.get("packages"):
            return False, "Missing required param: 'packages' for install operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        operation = params["operation"]

        if operation == "status":
            return self._status(context, params["package"])
        elif operation == "update":
            return self._privileged(context, ["apt-get", "update"])
        else:
            return self._privileged(context, ["apt-get", "install", "-y", *params["packages"]])

    def _status(self, ctx: ExecutionContext, package: str) -> Receipt:
        receipt = run_command(self.name, ctx.action.id, ["dpkg", "-s", package], ok_codes=(0, 1))
        if receipt.failed:
            return receipt

        installed = receipt.metadata.get("return_code") == 0 and "Status: install ok installed" in receipt.output
        receipt.output = "installed" if installed else "missing"
        receipt.metadata["installed"] = installed
        receipt.metadata["package"] = package
        return receipt

    def _privileged(self, ctx: ExecutionContext, argv: list[str]) -> Receipt:
        if os.geteuid() != 0:
            argv = ["sudo", *argv]
        return run_command(
            self.name,
            ctx.action.id,
            argv,
            timeout=INSTALL_TIMEOUT,
            capture=False,
        )
