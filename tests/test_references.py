"""Tests for device argument parsing and platform lookup."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from flasher.device.references import is_device_id, parse_device_args
from flasher.models import ConfigurationError, DeviceReference, MalformedArgumentError
from flasher.platforms import platform_for_dfu_product, platform_for_name, platform_name

DEVICE_ID = "e00fce68f2b1a4cd5e2f6a01"


class TestIsDeviceId:
    def test_valid_id(self):
        assert is_device_id(DEVICE_ID)

    def test_upper_case_id(self):
        assert is_device_id(DEVICE_ID.upper())

    def test_too_short(self):
        assert not is_device_id(DEVICE_ID[:-1])

    def test_non_hex(self):
        assert not is_device_id("z" * 24)

    def test_name(self):
        assert not is_device_id("my-boron")

    def test_trailing_newline_rejected(self):
        assert not is_device_id(DEVICE_ID + "\n")

    def test_trailing_newline_token_is_a_name(self):
        refs = parse_device_args([DEVICE_ID + "\n"])
        assert refs[0].id is None


class TestParseDeviceArgs:
    def test_no_device_no_all_flag(self):
        with pytest.raises(ConfigurationError, match="not specified"):
            parse_device_args(None)

    def test_all_devices(self):
        assert parse_device_args(None, all_devices=True) == []

    def test_all_devices_overrides_device_list(self):
        assert parse_device_args(["my-boron"], all_devices=True) == []

    def test_single_token(self):
        refs = parse_device_args("my-boron")
        assert refs == [DeviceReference(name="my-boron")]

    def test_id_and_name(self):
        refs = parse_device_args([DEVICE_ID, "my-boron"])
        assert refs[0].id == DEVICE_ID
        assert refs[0].name is None
        assert refs[1].name == "my-boron"
        assert refs[1].id is None

    def test_id_normalized_to_lower_case(self):
        refs = parse_device_args([DEVICE_ID.upper()])
        assert refs[0].id == DEVICE_ID

    def test_platform_hint(self):
        refs = parse_device_args([f"{DEVICE_ID}:argon", "my-boron:boron"])
        assert refs[0].platform_hint == 12
        assert refs[1].platform_hint == 13

    def test_empty_platform_means_no_hint(self):
        refs = parse_device_args(["my-boron:"])
        assert refs[0].platform_hint is None

    def test_missing_id_or_name(self):
        with pytest.raises(MalformedArgumentError, match="Missing device ID or name"):
            parse_device_args([":argon"])

    def test_unknown_platform(self):
        with pytest.raises(MalformedArgumentError, match="Unknown platform: toaster"):
            parse_device_args(["my-boron:toaster"])

    def test_extra_fields_ignored(self):
        refs = parse_device_args(["my-boron:boron:extra"])
        assert refs == [DeviceReference(name="my-boron", platform_hint=13)]


class TestDeviceReference:
    def test_neither_key_rejected(self):
        with pytest.raises(ValidationError):
            DeviceReference()

    def test_both_keys_rejected(self):
        with pytest.raises(ValidationError):
            DeviceReference(id=DEVICE_ID, name="my-boron")


class TestPlatform:
    def test_exact_lookup(self):
        assert platform_for_name("photon") == 6

    def test_lookup_is_case_sensitive(self):
        with pytest.raises(MalformedArgumentError, match="Unknown platform: Photon"):
            platform_for_name("Photon")

    def test_unknown_name(self):
        with pytest.raises(MalformedArgumentError):
            platform_for_name("toaster")

    def test_display_name(self):
        assert platform_name(13) == "boron"
        assert platform_name(None) == "unknown"
        assert platform_name(999) == "unknown"

    def test_dfu_product_ids(self):
        assert platform_for_dfu_product(0xD006) == 6
        assert platform_for_dfu_product(0xD00C) == 12
        assert platform_for_dfu_product(0xD0FF) is None
        assert platform_for_dfu_product(0xC006) is None
