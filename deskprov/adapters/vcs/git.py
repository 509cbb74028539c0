"""
Git adapter — fetch asset repositories.

Assets (icon themes, GTK themes, fonts) are published as git
repositories; the provisioner only ever needs a shallow clone.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from deskprov.adapters.base import Adapter, ExecutionContext
from deskprov.adapters.shell.command import run_command
from deskprov.core.models.action import Receipt

logger = logging.getLogger(__name__)

CLONE_TIMEOUT = 600


class GitAdapter(Adapter):
    """Git operations.

    Action params:
        operation (str): 'clone'.
        url (str): Repository URL.
        dest (str): Directory to clone into (must not exist).
        depth (int): History depth (default: 1; 0 for full history).
        timeout (int): Timeout in seconds (default: 600).
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation != "clone":
            return False, f"Unknown operation '{operation}'. Valid: clone"

        if not params.get("url"):
            return False, "Missing required param: 'url' for clone operation"
        if not params.get("dest"):
            return False, "Missing required param: 'dest' for clone operation"
        if Path(params["dest"]).exists():
            return False, f"Clone destination already exists: {params['dest']}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        return self._clone(context)

    def _clone(self, ctx: ExecutionContext) -> Receipt:
        params = ctx.action.params
        depth = params.get("depth", 1)

        argv = ["git", "clone", "--quiet"]
        if depth:
            argv += ["--depth", str(depth)]
        argv += [params["url"], params["dest"]]

        receipt = run_command(
            self.name,
            ctx.action.id,
            argv,
            cwd=ctx.cwd,
            timeout=params.get("timeout", CLONE_TIMEOUT),
        )
        receipt.metadata.update({"url": params["url"], "dest": params["dest"]})
        return receipt
