"""Parsing of device arguments into DeviceReference objects.

Each token has the form ``<idOrName>[:<platformName>]``. A 24-character hex
string is a device ID; anything else is a device name to be looked up in
the cloud registry.
"""

from __future__ import annotations

import re

from flasher.models import ConfigurationError, DeviceReference, MalformedArgumentError
from flasher.platforms import platform_for_name

_DEVICE_ID_RE = re.compile(r"[0-9a-fA-F]{24}")


def is_device_id(value: str) -> bool:
    """Check if a string has the lexical form of a device ID."""
    return _DEVICE_ID_RE.fullmatch(value) is not None


def parse_device_args(
    device: str | list[str] | None,
    all_devices: bool = False,
) -> list[DeviceReference]:
    """Turn raw ``--device`` values into references.

    Returns [] when ``all_devices`` is set, meaning "every local device".
    """
    if not device:
        if not all_devices:
            raise ConfigurationError("Target device is not specified", tool="args")
        return []
    if all_devices:
        return []
    if isinstance(device, str):
        device = [device]

    refs: list[DeviceReference] = []
    for token in device:
        parts = token.split(":")
        id_or_name = parts[0]
        platform = parts[1] if len(parts) > 1 else ""
        if not id_or_name:
            raise MalformedArgumentError("Missing device ID or name", tool="args")
        hint = platform_for_name(platform) if platform else None
        if is_device_id(id_or_name):
            refs.append(DeviceReference(id=id_or_name.lower(), platform_hint=hint))
        else:
            refs.append(DeviceReference(name=id_or_name, platform_hint=hint))
    return refs
