"""Abstract base class for local flash backends.

A backend is responsible for:
1. Enumerating the devices it can reach
2. Holding an exclusive claim on each enumerated device
3. Releasing the claim on devices the caller decides not to use
"""

from __future__ import annotations

import abc

from flasher.models import LocalDevice


class BaseFlashBackend(abc.ABC):
    """Base class for all flash backends."""

    def __init__(self, backend_id: str) -> None:
        self.backend_id = backend_id

    async def init(self) -> None:
        """Prepare the backend. Raises EnumerationError if it cannot be used."""

    async def shutdown(self) -> None:
        """Release any resources still held."""

    @abc.abstractmethod
    async def list_devices(self) -> list[LocalDevice]:
        """Enumerate and claim reachable devices.

        Raises EnumerationError on transport failure.
        """
        ...

    @abc.abstractmethod
    async def release_device(self, device_id: str) -> None:
        """Release the claim taken on a device during enumeration."""
        ...
