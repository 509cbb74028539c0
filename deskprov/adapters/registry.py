"""
Adapter registry — the one place services send actions to.

Services never hold adapters; they call ``registry.run(adapter_name,
action_id, **params)``. The registry picks the adapter, validates the
params, honours mock and dry-run modes, times the call, and always
answers with a Receipt.

    registry = AdapterRegistry(dry_run=True)
    registry.register(GitAdapter())
    receipt = registry.run("git", "assets:kora:clone", operation="clone", url=..., dest=...)
    receipt.status  # "skipped": validated, not executed
"""

from __future__ import annotations

import logging
import time
from typing import Any

from deskprov.adapters.base import Adapter, ExecutionContext
from deskprov.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus the execution modes of a run.

    Modes:
        mock_mode: nothing external happens. Actions go to ``mock_adapter``
            when one is given, otherwise every action simply succeeds.
        dry_run: actions are validated against the real adapter and
            answered with a ``skipped`` receipt.
    """

    def __init__(
        self,
        mock_mode: bool = False,
        dry_run: bool = False,
        workdir: str = ".",
        mock_adapter: Adapter | None = None,
    ):
        self._by_name: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock = mock_adapter
        self._dry_run = dry_run
        self._workdir = workdir

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def simulated(self) -> bool:
        """True when actions are not really executed (mock or dry-run)."""
        return self._mock_mode or self._dry_run

    # ── Adapters ────────────────────────────────────────────────

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._by_name:
            logger.warning("Replacing adapter '%s'", adapter.name)
        self._by_name[adapter.name] = adapter

    def unregister(self, name: str) -> None:
        self._by_name.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._by_name.get(name)

    def list_adapters(self) -> list[str]:
        return sorted(self._by_name)

    def missing_tools(self) -> list[str]:
        """Registered adapters whose underlying tool is not on this host."""
        return [name for name, adapter in sorted(self._by_name.items()) if not adapter.is_available()]

    # ── Dispatch ────────────────────────────────────────────────

    def run(self, adapter: str, action_id: str, step: str = "", **params: Any) -> Receipt:
        """Build an Action from keyword params and execute it."""
        return self.execute_action(Action(id=action_id, adapter=adapter, step=step, params=params))

    def execute_action(self, action: Action, workdir: str | None = None) -> Receipt:
        """Send ``action`` to its adapter and return the receipt. Never raises."""
        started = time.monotonic()

        if self._mock_mode and self._mock is None:
            logger.debug("[mock] %s:%s", action.adapter, action.id)
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.adapter}:{action.id}",
                metadata={"mock": True},
            )

        target = self._mock if self._mock_mode else self._by_name.get(action.adapter)
        if target is None:
            return _failed(action, f"No adapter registered for '{action.adapter}'")

        ctx = ExecutionContext(
            action=action,
            workdir=workdir or self._workdir,
            dry_run=self._dry_run,
            params=action.params,
        )

        try:
            valid, reason = target.validate(ctx)
        except Exception as e:
            return _failed(action, f"Validation error: {e}")
        if not valid:
            return _failed(action, f"Validation failed: {reason}")

        if self._dry_run:
            logger.info("[dry-run] %s:%s", action.adapter, action.id)
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] {action.adapter}:{action.id} not executed",
                metadata={"dry_run": True},
            )

        try:
            receipt = target.execute(ctx)
        except Exception as e:
            # Adapters must not raise; a raise here is an adapter bug
            logger.exception("Adapter '%s' raised on %s", action.adapter, action.id)
            receipt = _failed(action, f"Unexpected error: {e}")

        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        if receipt.failed:
            logger.debug("%s:%s failed: %s", action.adapter, action.id, receipt.error)
        return receipt


def _failed(action: Action, error: str) -> Receipt:
    return Receipt.failure(adapter=action.adapter, action_id=action.id, error=error)
