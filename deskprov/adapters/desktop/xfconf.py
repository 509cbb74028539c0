"""
xfconf adapter — talk to the running settings daemon via xfconf-query.

Used for channels the provisioner does not patch on disk (xsettings,
xfwm4), and to wake the daemon back up after a direct file patch.
"""

from __future__ import annotations

import logging
import shutil

from deskprov.adapters.base import Adapter, ExecutionContext
from deskprov.adapters.shell.command import run_command
from deskprov.core.models.action import Receipt

logger = logging.getLogger(__name__)

QUERY_TIMEOUT = 30


class XfconfAdapter(Adapter):
    """xfconf-query operations.

    Action params:
        operation (str): 'set' or 'list'.
        channel (str): Channel name, e.g. 'xsettings'.
        property (str): Property path (set).
        value (str): New value (set).
        type (str): Value type; when given the property is created if
            missing (``--create -t TYPE``).
    """

    @property
    def name(self) -> str:
        return "xfconf"

    def is_available(self) -> bool:
        return shutil.which("xfconf-query") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in {"set", "list"}:
            return False, f"Unknown operation '{operation}'. Valid: list, set"

        if not params.get("channel"):
            return False, "Missing required param: 'channel'"

        if operation == "set":
            if not params.get("property"):
                return False, "Missing required param: 'property' for set operation"
            if params.get("value") is None:
                return False, "Missing required param: 'value' for set operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        argv = ["xfconf-query", "-c", params["channel"]]

        if params["operation"] == "list":
            argv.append("-l")
        else:
            argv += ["-p", params["property"]]
            if params.get("type"):
                argv += ["--create", "-t", params["type"]]
            argv += ["-s", _render(params["value"])]

        return run_command(self.name, context.action.id, argv, timeout=QUERY_TIMEOUT)


def _render(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
