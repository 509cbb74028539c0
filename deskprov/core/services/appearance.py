"""
Appearance — icon theme, GTK and window theme, fonts, cursor.

These channels stay under the live daemon's control, so each setting
is pushed with xfconf-query rather than written to disk.
"""

from __future__ import annotations

import logging

from deskprov.adapters.registry import AdapterRegistry
from deskprov.core.errors import ProvisionError
from deskprov.core.models.profile import AppearanceSetting

logger = logging.getLogger(__name__)


def apply_appearance(settings: list[AppearanceSetting], registry: AdapterRegistry) -> int:
    """Apply settings in order; stop at the first failure.

    Returns:
        Number of settings applied.

    Raises:
        ProvisionError: If xfconf-query rejected a setting.
    """
    for setting in settings:
        params = {
            "operation": "set",
            "channel": setting.channel,
            "property": setting.prop,
            "value": setting.value,
        }
        if setting.type:
            params["type"] = setting.type

        receipt = registry.run(
            "xfconf",
            f"appearance:{setting.channel}:{setting.prop}",
            step="appearance",
            **params,
        )
        if receipt.failed:
            raise ProvisionError(
                f"Cannot set {setting.channel}:{setting.prop} = {setting.value!r}: {receipt.error}"
            )
        logger.info("  %s:%s = %s", setting.channel, setting.prop, setting.value)

    return len(settings)
