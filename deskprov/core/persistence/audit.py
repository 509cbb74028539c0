"""
Audit ledger — append-only record of provisioning runs.

One NDJSON line per run, kept under the user's XDG state directory,
so a machine's provisioning history survives the scratch directories
and the reboot.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from deskprov.core.context import get_home

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "audit.ndjson"


def default_state_dir() -> Path:
    """``$DESKPROV_STATE_DIR``, else ``$XDG_STATE_HOME/deskprov``, else ``~/.local/state/deskprov``."""
    override = os.environ.get("DESKPROV_STATE_DIR")
    if override:
        return Path(override)
    xdg = os.environ.get("XDG_STATE_HOME")
    base = Path(xdg) if xdg else get_home() / ".local" / "state"
    return base / "deskprov"


class AuditEntry(BaseModel):
    """One provisioning run as recorded in the ledger."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""
    operation_type: str = ""       # provision, panel
    profile: str = ""

    status: str = ""               # ok, failed
    steps_total: int = 0
    steps_succeeded: int = 0
    failed_step: str = ""
    duration_ms: int = 0

    errors: list[str] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)


class AuditWriter:
    """Appends runs to, and reads them back from, an NDJSON ledger."""

    def __init__(self, path: Path | None = None):
        self._path = path if path is not None else default_state_dir() / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append ``entry``. An unwritable ledger is logged, never fatal."""
        record = entry.model_dump_json() + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as ledger:
                ledger.write(record)
        except OSError as e:
            logger.error("Cannot record run %s in %s: %s", entry.operation_id, self._path, e)
            return
        logger.debug("Recorded run %s in %s", entry.operation_id, self._path)

    def read_all(self) -> list[AuditEntry]:
        """Every recorded run, oldest first. Unparseable lines are skipped."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Cannot read audit ledger %s: %s", self._path, e)
            return []

        entries = []
        for number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(AuditEntry.model_validate_json(line))
            except ValueError as e:
                logger.warning("%s:%d is not a valid entry, skipped (%s)", self._path, number, e)
        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """The last ``n`` runs, oldest first."""
        return self.read_all()[-n:] if n > 0 else []
