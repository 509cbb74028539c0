"""
Adapter base — the only doorway to external tools.

Every command the provisioner runs (git, dpkg, apt-get, pkill,
xfconf-query, reboot) and every file it writes outside the channel
document goes through an Adapter. Services never call subprocess
directly, which keeps them testable with MockAdapter and lets the
registry dry-run a whole pass.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from deskprov.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action."""

    action: Action
    workdir: str = "."
    dry_run: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def cwd(self) -> str:
        """Working directory: ``params['cwd']`` if given, else ``workdir``."""
        return self.action.params.get("cwd") or self.workdir


class Adapter(ABC):
    """One external tool behind the receipt contract.

    ``execute`` reports every outcome, failures included, as a Receipt;
    raising from it is a bug the registry turns into a failed receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'git', 'apt')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying tool exists on this host. Never raises."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check the action's params before execution.

        Returns:
            (ok, reason); ``reason`` is empty when the params are usable.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt. MUST never raise."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
