"""Equipment type -> Cal.com credential lookup.

Every bookable equipment type (projector, speaker, ...) lives in its own
Cal.com account, so each relay call must pick the API key matching the
equipment named in the request.
"""

from __future__ import annotations

import logging
from typing import Optional

from booking_relay.config import Settings

log = logging.getLogger("booking_relay.credentials")


class UnknownEquipmentTypeError(LookupError):
    """No credential is configured for the requested equipment type."""

    def __init__(self, equipment_type: str, valid_types: list[str]) -> None:
        self.equipment_type = equipment_type
        self.valid_types = valid_types
        super().__init__(f"No API key found for equipment type: {equipment_type}")


class EquipmentCredentials:
    """Immutable equipment credential map, built once at startup."""

    def __init__(self, api_keys: dict[str, str], default_type: str = "") -> None:
        self._keys = {name.strip().upper(): key for name, key in api_keys.items() if key}
        self._default_type = default_type.strip().upper()

    @classmethod
    def from_settings(cls, settings: Settings) -> "EquipmentCredentials":
        return cls(settings.equipment_api_keys(), settings.default_equipment_type)

    @property
    def equipment_types(self) -> list[str]:
        return list(self._keys)

    def normalize(self, equipment_type: Optional[str]) -> str:
        """Upper-case the requested type, falling back to the default."""
        name = (equipment_type or "").strip().upper()
        return name or self._default_type

    def resolve(self, equipment_type: Optional[str]) -> tuple[str, str]:
        """Return ``(normalized_type, api_key)``.

        Raises:
            UnknownEquipmentTypeError: the type is missing or unconfigured.
        """
        name = self.normalize(equipment_type)
        key = self._keys.get(name)
        if not key:
            log.warning("No credential for equipment type %r", name)
            raise UnknownEquipmentTypeError(name or "(none)", self.equipment_types)
        return name, key
