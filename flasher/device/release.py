"""Concurrent release of devices that were enumerated but not selected."""

from __future__ import annotations

import asyncio
import logging

from flasher.device import BaseFlashBackend
from flasher.models import LocalDevice, ReleaseFailure

logger = logging.getLogger("device-os-flasher.release")


async def release_unused_devices(
    backend: BaseFlashBackend,
    devices: list[LocalDevice],
) -> list[ReleaseFailure]:
    """Release every device concurrently and wait for all of them.

    Release is best-effort cleanup: failures are logged and returned,
    never raised.
    """
    if not devices:
        return []

    results = await asyncio.gather(
        *(backend.release_device(dev.id) for dev in devices),
        return_exceptions=True,
    )

    failures: list[ReleaseFailure] = []
    for dev, result in zip(devices, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, Exception):
            logger.warning("Failed to release device %s: %s", dev.id, result)
            failures.append(ReleaseFailure(device_id=dev.id, error=str(result)))
        else:
            logger.debug("Released device %s", dev.id)
    return failures
