"""
User context — whose desktop are we provisioning.

The home directory is resolved ONCE at startup by the CLI (or by a
test fixture) and every service expands ``~`` against it. When the
tool is started through sudo, ``~`` still means the invoking user's
home, not root's.
"""

from __future__ import annotations

import getpass
import os
import pwd
from pathlib import Path
from typing import Optional

_home: Optional[Path] = None


def real_home() -> Path:
    """The invoking user's home (the sudo caller if present)."""
    sudo_user = os.environ.get("SUDO_USER")
    if sudo_user:
        try:
            return Path(pwd.getpwnam(sudo_user).pw_dir)
        except KeyError:
            pass
    return Path(os.path.expanduser("~"))


def real_user() -> str:
    return os.environ.get("SUDO_USER") or getpass.getuser()


def set_home(home: Optional[Path]) -> None:
    """Register the target home directory for the current process."""
    global _home
    _home = home


def get_home() -> Path:
    """Target home directory; resolved lazily if never set."""
    return _home if _home is not None else real_home()


def expand_path(raw: str | Path) -> Path:
    """Expand a leading ``~`` against the target home."""
    text = str(raw)
    if text == "~":
        return get_home()
    if text.startswith("~/"):
        return get_home() / text[2:]
    return Path(text)


def is_root() -> bool:
    return os.geteuid() == 0
