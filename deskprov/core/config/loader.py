"""
Configuration loader — reads a provisioning profile into domain models.

Lookup order:
    1. an explicit path (``--config``)
    2. ``provision.yml`` found walking up from the current directory
    3. the default profile bundled with the package
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from deskprov.core.errors import ConfigError
from deskprov.core.models.profile import Profile

logger = logging.getLogger(__name__)

PROFILE_FILE = "provision.yml"
DEFAULT_PROFILE = Path(__file__).resolve().parent.parent.parent / "data" / "default_profile.yml"

__all__ = ["ConfigError", "DEFAULT_PROFILE", "find_profile_file", "load_profile", "resolve_profile_path"]


def find_profile_file(start_dir: Path | None = None) -> Path | None:
    """Search for provision.yml starting from ``start_dir``, walking up.

    Returns:
        Path to provision.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PROFILE_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def resolve_profile_path(path: Path | None = None) -> Path:
    """Apply the lookup order and return the profile file to load."""
    if path is not None:
        return path
    found = find_profile_file()
    if found is not None:
        return found
    logger.debug("No %s found, using bundled default profile", PROFILE_FILE)
    return DEFAULT_PROFILE


def load_profile(path: Path | None = None) -> Profile:
    """Load and validate a provisioning profile.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    path = resolve_profile_path(path)

    if not path.is_file():
        raise ConfigError(f"Profile not found: {path}")

    logger.debug("Loading profile from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Profiles may wrap everything under a "profile" key
    if isinstance(data.get("profile"), dict):
        data = data["profile"]

    try:
        profile = Profile.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid profile {path}: {e}") from e

    logger.info(
        "Loaded profile '%s' (%d assets, %d appearance settings)",
        profile.name,
        len(profile.assets),
        len(profile.appearance),
    )
    return profile
