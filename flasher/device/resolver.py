"""Target device resolution.

Reconciles three sources of device information into the set of devices to
flash and the set to leave alone:

1. Device references from the command line (by ID or by name, with an
   optional platform hint)
2. Locally enumerated devices (ID always known, platform sometimes not)
3. The cloud registry (names and platforms), queried at most once and only
   when a reference is by name or a local platform is still unknown
"""

from __future__ import annotations

import logging
from typing import Protocol

from flasher.models import (
    DeviceNotFoundError,
    DeviceReference,
    LocalDevice,
    RegistryDevice,
    ResolutionResult,
)

logger = logging.getLogger("device-os-flasher.resolver")


class RegistryLookup(Protocol):
    async def get_devices(self) -> list[RegistryDevice]: ...


class TargetResolver:
    """Splits local devices into target and unused sets."""

    def __init__(self, registry: RegistryLookup) -> None:
        self.registry = registry

    async def resolve(
        self,
        local_devices: list[LocalDevice],
        references: list[DeviceReference],
    ) -> ResolutionResult:
        """Resolve references against local devices.

        An empty reference list selects every local device.

        Raises:
            DeviceNotFoundError: A reference matches no local device, or a
                selected device's platform cannot be determined
        """
        devices: dict[str, LocalDevice] = {}
        unknown_platform: dict[str, None] = {}  # insertion-ordered set
        for dev in local_devices:
            devices[dev.id] = dev
            if dev.platform_id is None:
                unknown_platform[dev.id] = None

        platforms: dict[str, int] = {}  # platforms learned during resolution
        requested: set[str] = set()
        pending_names: dict[str, None] = {}

        for ref in references:
            if ref.id is None:
                pending_names[ref.name] = None
                continue
            if ref.id not in devices:
                raise DeviceNotFoundError(ref.id)
            if ref.id in unknown_platform and ref.platform_hint is not None:
                platforms[ref.id] = ref.platform_hint
                del unknown_platform[ref.id]
            requested.add(ref.id)

        if pending_names or unknown_platform:
            await self._apply_registry(devices, unknown_platform, platforms, requested, pending_names)

        resolved = [
            dev.model_copy(update={"platform_id": platforms[dev.id]}) if dev.id in platforms else dev
            for dev in devices.values()
        ]

        if references:
            target = [dev for dev in resolved if dev.id in requested]
            unused = [dev for dev in resolved if dev.id not in requested]
        else:
            target = resolved
            unused = []

        for dev in target:
            if dev.id in unknown_platform:
                raise DeviceNotFoundError(dev.id, f"Unknown device: {dev.id}")

        logger.debug(
            "Resolved %d target device(s), %d unused", len(target), len(unused),
        )
        return ResolutionResult(target=target, unused=unused)

    async def _apply_registry(
        self,
        devices: dict[str, LocalDevice],
        unknown_platform: dict[str, None],
        platforms: dict[str, int],
        requested: set[str],
        pending_names: dict[str, None],
    ) -> None:
        """Fill in names and missing platforms from a single registry fetch."""
        logger.info("Getting device info from the cloud")
        registry_devices = await self.registry.get_devices()

        for reg in registry_devices:
            if reg.name in pending_names:
                del pending_names[reg.name]
                if reg.id not in devices:
                    raise DeviceNotFoundError(reg.name)
                requested.add(reg.id)
            if reg.id in unknown_platform:
                # Registry is authoritative for anything still unknown,
                # requested or not
                del unknown_platform[reg.id]
                platforms[reg.id] = reg.platform_id

        if pending_names:
            name = next(iter(pending_names))
            raise DeviceNotFoundError(name, f"Unknown device: {name}")
