"""App — wires argument parsing, enumeration, resolution and release."""

from __future__ import annotations

import argparse
import logging
import uuid

import semver

from flasher.cloud import ParticleCloud
from flasher.config import FlasherConfig
from flasher.device import BaseFlashBackend
from flasher.device.dfu import DfuUtilBackend
from flasher.device.pool import ClaimPool
from flasher.device.references import parse_device_args
from flasher.device.release import release_unused_devices
from flasher.device.resolver import TargetResolver
from flasher.models import (
    ConfigurationError,
    LocalDevice,
    MalformedArgumentError,
    NoDevicesFoundError,
    RegistryDevice,
    ReleaseFailure,
)

logger = logging.getLogger("device-os-flasher.app")


def parse_version_arg(value: str | None) -> str:
    """Validate a Device OS version argument. A leading 'v' is accepted."""
    if not value:
        raise ConfigurationError("Device OS version is not specified", tool="args")
    ver = value[1:] if value.startswith("v") else value
    if not semver.Version.is_valid(ver):
        raise MalformedArgumentError(f"Invalid Device OS version: {value}", tool="args")
    return ver


class App:
    """One flasher run: select target devices and release the rest."""

    def __init__(
        self,
        config: FlasherConfig,
        backend: BaseFlashBackend | None = None,
        cloud: ParticleCloud | None = None,
    ) -> None:
        self.config = config
        self.session_id = uuid.uuid4().hex[:12]
        self._backend = backend
        self._cloud_client = cloud
        self._cloud_ready = False
        self.version: str | None = None
        self.target_devices: list[LocalDevice] = []
        self.release_failures: list[ReleaseFailure] = []

    async def init(self, args: argparse.Namespace) -> list[LocalDevice]:
        """Parse arguments and resolve the devices to flash."""
        self.version = parse_version_arg(args.version)
        refs = parse_device_args(args.device, all_devices=args.all_devices)

        self.config.home_dir.mkdir(parents=True, exist_ok=True)

        logger.info("Initializing flash interface")
        if self._backend is None:
            self._backend = DfuUtilBackend(
                ClaimPool(self.config.home_dir),
                session_id=self.session_id,
                dfu_util=self.config.dfu_util,
            )
        await self._backend.init()

        logger.info("Enumerating local devices")
        local_devices = await self._list_local_devices()
        result = await TargetResolver(self).resolve(local_devices, refs)
        self.release_failures = await release_unused_devices(self._backend, result.unused)
        self.target_devices = result.target
        return self.target_devices

    async def shutdown(self) -> None:
        """Close the cloud client and release remaining claims. Never raises."""
        if self._cloud_client is not None and self._cloud_ready:
            try:
                await self._cloud_client.shutdown()
            except Exception as e:
                logger.warning("Cloud shutdown failed: %s", e)
            self._cloud_ready = False
        if self._backend is not None:
            try:
                await self._backend.shutdown()
            except Exception as e:
                logger.warning("Backend shutdown failed: %s", e)

    async def get_devices(self) -> list[RegistryDevice]:
        """Registry lookup used by the resolver; connects on first use."""
        cloud = await self._cloud()
        return await cloud.get_devices()

    async def _list_local_devices(self) -> list[LocalDevice]:
        devices = await self._backend.list_devices()
        if not devices:
            raise NoDevicesFoundError()
        logger.debug("Found devices:")
        for i, dev in enumerate(devices, start=1):
            logger.debug("%d. %s", i, dev.id)
        return devices

    async def _cloud(self) -> ParticleCloud:
        if self._cloud_client is None:
            self._cloud_client = ParticleCloud(self.config)
        if not self._cloud_ready:
            await self._cloud_client.init()
            self._cloud_ready = True
        return self._cloud_client
