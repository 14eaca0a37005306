"""DfuUtilBackend — enumerates Particle devices in DFU mode via dfu-util."""

from __future__ import annotations

import asyncio
import logging
import re
import shutil

from flasher.device import BaseFlashBackend
from flasher.device.pool import ClaimPool
from flasher.models import EnumerationError, LocalDevice
from flasher.platforms import PARTICLE_USB_VENDOR_ID, platform_for_dfu_product

logger = logging.getLogger("device-os-flasher.dfu")

# Found DFU: [2b04:d006] ver=0250, devnum=12, cfg=1, intf=0, path="1-1", alt=0, name="...", serial="..."
_FOUND_DFU_RE = re.compile(
    r'^Found DFU: \[(?P<vendor>[0-9a-fA-F]{4}):(?P<product>[0-9a-fA-F]{4})\].*?serial="(?P<serial>[^"]*)"'
)


def parse_dfu_list(output: str) -> list[LocalDevice]:
    """Parse ``dfu-util -l`` output into devices.

    dfu-util prints one line per alt setting, so a device shows up several
    times; only the first line per serial is kept. Non-Particle devices are
    ignored.
    """
    devices: dict[str, LocalDevice] = {}
    for line in output.splitlines():
        match = _FOUND_DFU_RE.match(line.strip())
        if not match:
            continue
        if int(match.group("vendor"), 16) != PARTICLE_USB_VENDOR_ID:
            continue
        serial = match.group("serial").lower()
        if not serial or serial == "unknown" or serial in devices:
            continue
        platform_id = platform_for_dfu_product(int(match.group("product"), 16))
        devices[serial] = LocalDevice(id=serial, platform_id=platform_id)
    return list(devices.values())


class DfuUtilBackend(BaseFlashBackend):
    """Lists DFU-mode devices and claims them in the shared claim pool."""

    def __init__(self, pool: ClaimPool, session_id: str, dfu_util: str = "dfu-util") -> None:
        super().__init__("dfu")
        self.pool = pool
        self.session_id = session_id
        self.dfu_util = dfu_util

    async def init(self) -> None:
        if shutil.which(self.dfu_util) is None:
            raise EnumerationError(f"{self.dfu_util} not found in PATH", tool="dfu-util")
        await self.pool.cleanup_stale_claims()

    async def _run_dfu_util(self, *args: str) -> str:
        """Run dfu-util and return stdout.

        Raises EnumerationError on non-zero exit code.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                self.dfu_util, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise EnumerationError(f"Failed to run {self.dfu_util}: {e}", tool="dfu-util") from e
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise EnumerationError(
                f"dfu-util {' '.join(args)} failed: {stderr.decode().strip()}",
                tool="dfu-util",
            )
        return stdout.decode()

    async def list_devices(self) -> list[LocalDevice]:
        stdout = await self._run_dfu_util("-l")
        found = parse_dfu_list(stdout)
        claimed = set(await self.pool.claim_devices([d.id for d in found], self.session_id))
        return [d for d in found if d.id in claimed]

    async def release_device(self, device_id: str) -> None:
        await self.pool.release_device(device_id, session_id=self.session_id)

    async def shutdown(self) -> None:
        released = await self.pool.release_session(self.session_id)
        if released:
            logger.debug("Released %d claim(s) on shutdown", len(released))
