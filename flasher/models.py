"""Core data models and error types for device resolution."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FlasherError(Exception):
    """Base error. ``tool`` names the component that raised it."""

    def __init__(self, message: str, tool: str = "flasher") -> None:
        super().__init__(message)
        self.tool = tool


class ConfigurationError(FlasherError):
    """Required input is missing."""


class MalformedArgumentError(FlasherError):
    """A command line value failed lexical or lookup validation."""


class ResolutionError(FlasherError):
    """Target devices could not be determined."""


class DeviceNotFoundError(ResolutionError):
    """A referenced ID or name does not match a usable local device.

    ``key`` is the offending device ID or name, as the user supplied it.
    """

    def __init__(self, key: str, message: str | None = None, tool: str = "resolver") -> None:
        super().__init__(message or f"Device not found: {key}", tool=tool)
        self.key = key


class NoDevicesFoundError(ResolutionError):
    """Local enumeration returned nothing."""

    def __init__(self, message: str = "No devices found", tool: str = "enumerator") -> None:
        super().__init__(message, tool=tool)


class EnumerationError(FlasherError):
    """The local device enumerator failed."""


class NetworkError(FlasherError):
    """The device registry could not be reached or returned an error."""


class AuthError(FlasherError):
    """The device registry rejected (or was never given) credentials."""


class ClaimError(FlasherError):
    """A device claim is held by another session."""


# ---------------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------------


class DeviceReference(BaseModel):
    """A device named on the command line, by ID or by name."""

    id: str | None = None
    name: str | None = None
    platform_hint: int | None = Field(
        default=None,
        description="Platform to assume if the device's platform is otherwise unknown",
    )

    @model_validator(mode="after")
    def _exactly_one_key(self) -> DeviceReference:
        if (self.id is None) == (self.name is None):
            raise ValueError("exactly one of id or name must be set")
        return self


class LocalDevice(BaseModel):
    """A device found by local enumeration. Platform may be unknown."""

    model_config = ConfigDict(frozen=True)

    id: str
    platform_id: int | None = None


class RegistryDevice(BaseModel):
    """A device record from the cloud registry."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    platform_id: int


class ResolutionResult(BaseModel):
    """Local devices split into those to flash and those to leave alone."""

    target: list[LocalDevice] = Field(default_factory=list)
    unused: list[LocalDevice] = Field(default_factory=list)


class ReleaseFailure(BaseModel):
    """A device whose claim could not be released."""

    device_id: str
    error: str


# ---------------------------------------------------------------------------
# Claim pool state
# ---------------------------------------------------------------------------


class DeviceClaim(BaseModel):
    """An exclusive hold on a device by one flasher session."""

    device_id: str
    session_id: str
    pid: int | None = None
    claimed_at: datetime


class DeviceClaimState(BaseModel):
    """Contents of the claim pool file."""

    updated_at: datetime
    claims: dict[str, DeviceClaim] = Field(default_factory=dict)
