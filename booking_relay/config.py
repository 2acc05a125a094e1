"""Application configuration via environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

log = logging.getLogger("booking_relay.config")

# Equipment type -> settings attribute holding its Cal.com API key
EQUIPMENT_KEY_FIELDS: dict[str, str] = {
    "PROJECTOR": "cal_api_key_projector",
    "SPEAKER": "cal_api_key_speaker",
    "PLATINUM_SPEAKER": "cal_api_key_platinum_speaker",
    "LOGITECH1": "cal_api_key_logitech1",
    "LOGITECH2": "cal_api_key_logitech2",
}


class Settings(BaseSettings):
    # Per-equipment Cal.com credentials
    cal_api_key_projector: str = ""
    cal_api_key_speaker: str = ""
    cal_api_key_platinum_speaker: str = ""
    cal_api_key_logitech1: str = ""
    cal_api_key_logitech2: str = ""

    # Used when a request omits equipmentType
    default_equipment_type: str = ""

    # Cal.com upstream
    calcom_base_url: str = "https://api.cal.com/v1"
    calcom_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "info"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: str = "*"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def equipment_api_keys(self) -> dict[str, str]:
        """Equipment type -> API key, configured types only."""
        keys: dict[str, str] = {}
        for equipment_type, field_name in EQUIPMENT_KEY_FIELDS.items():
            value = getattr(self, field_name).strip()
            if value:
                keys[equipment_type] = value
        return keys

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []

        if self.calcom_timeout_seconds <= 0:
            raise ValueError("CALCOM_TIMEOUT_SECONDS must be positive.")

        configured = self.equipment_api_keys()
        if not configured:
            warnings.append(
                "No CAL_API_KEY_* variable is set. Every relay request will "
                "fail with an unknown equipment type."
            )

        missing = sorted(set(EQUIPMENT_KEY_FIELDS) - set(configured))
        if configured and missing:
            warnings.append(
                "No API key configured for equipment: " + ", ".join(missing)
            )

        default = self.default_equipment_type.strip().upper()
        if default and default not in configured:
            warnings.append(
                f"DEFAULT_EQUIPMENT_TYPE={default} has no API key configured."
            )

        return warnings


settings = Settings()
