"""
Shell command adapter — run a command and capture its output.

The other command-line adapters (git, apt, xfconf) build their argv and
hand it to ``run_command`` so timing, timeouts and error capture live in
one place.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import time
from collections.abc import Sequence
from pathlib import Path

from deskprov.adapters.base import Adapter, ExecutionContext
from deskprov.core.models.action import Receipt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300


def run_command(
    adapter: str,
    action_id: str,
    argv: Sequence[str] | str,
    cwd: str | None = None,
    timeout: int = DEFAULT_TIMEOUT,
    ok_codes: Sequence[int] = (0,),
    capture: bool = True,
) -> Receipt:
    """Run ``argv`` and turn the outcome into a Receipt.

    A string is run through the shell; a sequence is executed directly.
    Exit codes listed in ``ok_codes`` count as success. With
    ``capture=False`` the child shares the terminal (needed for sudo
    password prompts).
    """
    use_shell = isinstance(argv, str)
    display = argv if use_shell else shlex.join(argv)

    logger.debug("Executing: %s (cwd=%s)", display, cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(
            argv,
            shell=use_shell,
            cwd=cwd,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command timed out after {timeout}s: {display}",
            metadata={"command": display, "timeout": timeout},
        )
    except OSError as e:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Cannot execute {display}: {e}",
            metadata={"command": display},
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    output = (result.stdout or "").strip()
    stderr = (result.stderr or "").strip()
    metadata = {"command": display, "return_code": result.returncode}

    if result.returncode in ok_codes:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            output=output,
            duration_ms=elapsed_ms,
            metadata={**metadata, "stderr": stderr},
        )

    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=stderr or f"{display} exited with code {result.returncode}",
        duration_ms=elapsed_ms,
        metadata={**metadata, "stdout": output},
    )


class ShellCommandAdapter(Adapter):
    """Execute commands and capture output.

    Action params:
        command (str | list[str]): The command. A string runs through sh.
        timeout (int): Timeout in seconds (default: 300).
        cwd (str): Working directory (default: context workdir).
        ok_codes (list[int]): Exit codes treated as success (default: [0]).
        interactive (bool): Share the terminal instead of capturing.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.action.params.get("command")
        if not command:
            return False, "Missing required param: 'command'"

        cwd = context.cwd
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        return run_command(
            self.name,
            context.action.id,
            params["command"],
            cwd=context.cwd,
            timeout=params.get("timeout", DEFAULT_TIMEOUT),
            ok_codes=params.get("ok_codes", (0,)),
            capture=not params.get("interactive", False),
        )
