"""
ConfigStoreDaemon — keep xfconfd out of the way while a channel file is patched.

xfconfd caches every channel in memory and rewrites the files on its
own schedule, so a file patched under a live daemon is silently
overwritten. The daemon is killed before the patch and woken again
afterwards:

    with ConfigStoreDaemon(registry).paused():
        with patch_document(panel_xml) as doc:
            ...

Release always runs, also when the patch fails. xfconfd is D-Bus
activated, so any xfconf-query call starts it again and it reloads the
files from disk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from deskprov.adapters.registry import AdapterRegistry
from deskprov.core.errors import ProvisionError

logger = logging.getLogger(__name__)

DAEMON_PROCESS = "xfconfd"

# pkill exit codes: 0 = signalled, 1 = no process matched
_PKILL_OK = (0, 1)


class ConfigStoreDaemon:
    """Acquire/release contract around the xfconf settings daemon."""

    def __init__(
        self,
        registry: AdapterRegistry,
        process_name: str = DAEMON_PROCESS,
        channel: str = "xfce4-panel",
    ):
        self._registry = registry
        self._process_name = process_name
        self._channel = channel
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def acquire(self) -> None:
        """Stop the daemon so it cannot write over the channel files.

        Raises:
            ProvisionError: If the daemon could not be signalled.
        """
        receipt = self._registry.run(
            "shell",
            "daemon:stop",
            step="panel",
            command=["pkill", "-KILL", "-x", self._process_name],
            ok_codes=list(_PKILL_OK),
        )
        if receipt.failed:
            raise ProvisionError(f"Cannot stop {self._process_name}: {receipt.error}")

        if receipt.metadata.get("return_code") == 1:
            logger.info("%s was not running", self._process_name)
        else:
            logger.info("Stopped %s", self._process_name)
        self._stopped = True

    def release(self) -> bool:
        """Let the daemon come back. Never raises.

        Returns:
            True if the daemon answered the wake-up query.
        """
        self._stopped = False
        receipt = self._registry.run(
            "xfconf",
            "daemon:wake",
            step="panel",
            operation="list",
            channel=self._channel,
        )
        if receipt.failed:
            logger.warning(
                "Could not wake %s (%s); it will start with the next session",
                self._process_name,
                receipt.error,
            )
            return False

        logger.info("%s reactivated", self._process_name)
        return True

    @contextmanager
    def paused(self) -> Iterator[ConfigStoreDaemon]:
        """Scope in which the daemon is stopped; release is guaranteed."""
        self.acquire()
        try:
            yield self
        finally:
            self.release()
