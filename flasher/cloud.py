"""ParticleCloud — HTTP client for the cloud device registry.

Only the device list is needed: it supplies names for devices referenced by
name and platforms for devices that local enumeration could not identify.
"""

from __future__ import annotations

import logging

import httpx

from flasher.config import FlasherConfig
from flasher.models import AuthError, NetworkError, RegistryDevice

logger = logging.getLogger("device-os-flasher.cloud")


class ParticleCloud:
    """Speaks the Particle cloud REST API."""

    def __init__(self, config: FlasherConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def init(self) -> None:
        """Create the HTTP client. Raises AuthError if no token is configured."""
        if not self.config.access_token:
            raise AuthError(
                "No access token; set PARTICLE_ACCESS_TOKEN or log in with the particle CLI",
                tool="cloud",
            )
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={"Authorization": f"Bearer {self.config.access_token}"},
            timeout=self.config.request_timeout,
            transport=self._transport,
        )

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_devices(self) -> list[RegistryDevice]:
        """Fetch every device registered to the account."""
        if self._client is None:
            raise NetworkError("Cloud client is not initialized", tool="cloud")
        try:
            resp = await self._client.get("/v1/devices")
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                raise AuthError(f"Cloud rejected credentials (HTTP {status})", tool="cloud") from e
            raise NetworkError(f"GET /v1/devices failed: HTTP {status}", tool="cloud") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"GET /v1/devices failed: {e}", tool="cloud") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from /v1/devices: {e}", tool="cloud") from e
        if not isinstance(data, list):
            raise NetworkError("Unexpected /v1/devices response: not a list", tool="cloud")

        devices: list[RegistryDevice] = []
        for entry in data:
            device = self._parse_device(entry)
            if device is not None:
                devices.append(device)
        logger.debug("Cloud returned %d device(s)", len(devices))
        return devices

    @staticmethod
    def _parse_device(entry: object) -> RegistryDevice | None:
        if not isinstance(entry, dict) or not entry.get("id") or entry.get("platform_id") is None:
            logger.warning("Skipping malformed device entry: %r", entry)
            return None
        try:
            platform_id = int(entry["platform_id"])
        except (TypeError, ValueError):
            logger.warning("Skipping device %s with bad platform_id: %r", entry["id"], entry["platform_id"])
            return None
        return RegistryDevice(
            id=str(entry["id"]).lower(),
            name=str(entry.get("name") or ""),
            platform_id=platform_id,
        )
