"""
Mock adapter — stands in for any tool in tests and --mock runs.
"""

from __future__ import annotations

from deskprov.adapters.base import Adapter, ExecutionContext
from deskprov.core.models.action import Receipt


class MockAdapter(Adapter):
    """Records every call and succeeds unless told otherwise.

    Canned receipts are keyed by action id or by an id prefix, so
    ``set_failure("assets:kora")`` fails every kora action while other
    assets still succeed.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] ok",
    ):
        self._name = adapter_name
        self._available = available
        self._output = default_output
        self._canned: dict[str, Receipt] = {}
        self._calls: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._calls

    @property
    def call_count(self) -> int:
        return len(self._calls)

    @property
    def action_ids(self) -> list[str]:
        """Ids of the received actions, in call order."""
        return [ctx.action.id for ctx in self._calls]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._canned[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        self.set_response(action_id, Receipt.failure(adapter=self._name, action_id=action_id, error=error))

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._calls.append(context)
        canned = self._lookup(context.action.id)
        if canned is not None:
            return canned
        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Forget calls and canned receipts."""
        self._calls.clear()
        self._canned.clear()

    def _lookup(self, action_id: str) -> Receipt | None:
        if action_id in self._canned:
            return self._canned[action_id]
        for prefix, receipt in self._canned.items():
            if action_id.startswith(prefix):
                return receipt
        return None
