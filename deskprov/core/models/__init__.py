"""
Domain models — Pydantic types for the provisioner.

    from deskprov.core.models import Action, Receipt, Profile
"""

from deskprov.core.models.action import Action, Receipt
from deskprov.core.models.profile import (
    AppearanceSetting,
    AssetSpec,
    LauncherDefinition,
    PanelProfile,
    PanelSetting,
    PluginDefinition,
    Profile,
)

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # profile.py
    "AppearanceSetting",
    "AssetSpec",
    "LauncherDefinition",
    "PanelProfile",
    "PanelSetting",
    "PluginDefinition",
    "Profile",
]
