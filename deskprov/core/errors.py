"""
Error taxonomy — every failure the provisioner can report.

Two families:
    - PatchError: something is wrong with the configuration document
      or with an edit applied to it. Fatal, nothing is committed.
    - ProvisionError: an external collaborator (package manager, git,
      xfconf-query) failed. Fatal, the run stops at that step.

ConfigError (a bad or missing profile) is raised by the loader before
any step runs.

Adapters never raise these; services translate failed receipts into them.
"""

from __future__ import annotations


class DeskprovError(Exception):
    """Base class for all provisioner errors."""


# ── Document errors ─────────────────────────────────────────────


class PatchError(DeskprovError):
    """The configuration document cannot be loaded or edited."""


class PathNotFound(PatchError):
    """A structural edit referenced a node path that does not exist."""

    def __init__(self, path: str, missing: str | None = None):
        self.path = path
        self.missing = missing
        detail = f" (no property named '{missing}')" if missing else ""
        super().__init__(f"Path not found: {path}{detail}")


class FragmentError(PatchError):
    """A raw fragment could not be parsed into property elements."""


class InvalidValue(PatchError):
    """A value cannot be represented with the requested property type."""


class WriteFailure(PatchError):
    """Serializing or atomically replacing the document failed."""


# ── Collaborator errors ─────────────────────────────────────────


class ProvisionError(DeskprovError):
    """An external tool failed during provisioning."""


class FetchFailure(ProvisionError):
    """Cloning or extracting an asset failed."""


class InstallFailure(ProvisionError):
    """Installing required packages failed (privilege or network)."""


# ── Profile errors ──────────────────────────────────────────────


class ConfigError(DeskprovError):
    """The provisioning profile is missing or invalid."""
