"""Particle platform names and IDs."""

from __future__ import annotations

from flasher.models import MalformedArgumentError

PARTICLE_USB_VENDOR_ID = 0x2B04
DFU_PRODUCT_ID_BASE = 0xD000  # DFU mode product ID = base + platform ID

PLATFORMS: dict[str, int] = {
    "core": 0,
    "photon": 6,
    "p1": 8,
    "electron": 10,
    "argon": 12,
    "boron": 13,
    "xenon": 14,
    "esomx": 15,
    "asom": 22,
    "bsom": 23,
    "xsom": 24,
    "b5som": 25,
    "tracker": 26,
    "trackerm": 28,
    "p2": 32,
    "msom": 35,
}

_NAMES_BY_ID = {platform_id: name for name, platform_id in PLATFORMS.items()}


def platform_for_name(name: str) -> int:
    """Return the platform ID for an exact platform name."""
    platform_id = PLATFORMS.get(name)
    if platform_id is None:
        raise MalformedArgumentError(f"Unknown platform: {name}", tool="platform")
    return platform_id


def platform_name(platform_id: int | None) -> str:
    """Display name for a platform ID. Returns 'unknown' if not recognized."""
    if platform_id is None:
        return "unknown"
    return _NAMES_BY_ID.get(platform_id, "unknown")


def platform_for_dfu_product(product_id: int) -> int | None:
    """Map a Particle DFU-mode USB product ID to a known platform ID."""
    platform_id = product_id - DFU_PRODUCT_ID_BASE
    if platform_id in _NAMES_BY_ID:
        return platform_id
    return None
