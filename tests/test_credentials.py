"""Tests for equipment credential lookup and settings."""

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from booking_relay.config import Settings
from booking_relay.credentials import EquipmentCredentials, UnknownEquipmentTypeError


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestEquipmentCredentials:
    @pytest.fixture
    def credentials(self):
        return EquipmentCredentials({"PROJECTOR": "pk_proj", "SPEAKER": "pk_spk"})

    def test_resolve_exact(self, credentials):
        assert credentials.resolve("PROJECTOR") == ("PROJECTOR", "pk_proj")

    def test_resolve_is_case_insensitive(self, credentials):
        assert credentials.resolve(" speaker ") == ("SPEAKER", "pk_spk")

    def test_unknown_type(self, credentials):
        with pytest.raises(UnknownEquipmentTypeError) as exc_info:
            credentials.resolve("whiteboard")
        assert str(exc_info.value) == "No API key found for equipment type: WHITEBOARD"
        assert exc_info.value.valid_types == ["PROJECTOR", "SPEAKER"]

    def test_missing_type_without_default(self, credentials):
        with pytest.raises(UnknownEquipmentTypeError):
            credentials.resolve(None)

    def test_missing_type_uses_default(self):
        creds = EquipmentCredentials({"PROJECTOR": "pk_proj"}, default_type="projector")
        assert creds.resolve(None) == ("PROJECTOR", "pk_proj")
        assert creds.resolve("") == ("PROJECTOR", "pk_proj")

    def test_empty_keys_are_not_configured(self):
        creds = EquipmentCredentials({"PROJECTOR": "pk_proj", "SPEAKER": ""})
        assert creds.equipment_types == ["PROJECTOR"]
        with pytest.raises(UnknownEquipmentTypeError):
            creds.resolve("SPEAKER")


class TestSettings:
    def test_equipment_api_keys_from_fields(self):
        s = _settings(cal_api_key_projector="pk1", cal_api_key_logitech2="  pk2 ")
        assert s.equipment_api_keys() == {"PROJECTOR": "pk1", "LOGITECH2": "pk2"}

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("CAL_API_KEY_PLATINUM_SPEAKER", "pk_plat")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        s = _settings()
        assert s.equipment_api_keys()["PLATINUM_SPEAKER"] == "pk_plat"
        assert s.log_level == "debug"

    def test_credentials_from_settings(self):
        s = _settings(cal_api_key_speaker="pk", default_equipment_type="speaker")
        creds = EquipmentCredentials.from_settings(s)
        assert creds.resolve(None) == ("SPEAKER", "pk")

    def test_allowed_origins(self):
        s = _settings(cors_origins="https://a.example, https://b.example")
        assert s.allowed_origins == ["https://a.example", "https://b.example"]

    def test_warns_without_any_key(self):
        warnings = _settings().validate_startup()
        assert any("No CAL_API_KEY_*" in w for w in warnings)

    def test_warns_on_unconfigured_default(self):
        s = _settings(cal_api_key_projector="pk", default_equipment_type="speaker")
        warnings = s.validate_startup()
        assert any("DEFAULT_EQUIPMENT_TYPE=SPEAKER" in w for w in warnings)

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            _settings(calcom_timeout_seconds=0).validate_startup()
