"""Cross-process device claims.

Two flasher processes must never drive the same device. Every enumerated
device is claimed in a shared JSON file guarded by an flock; claims are
released when the device is not selected or the session shuts down.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

from flasher.models import ClaimError, DeviceClaim, DeviceClaimState

logger = logging.getLogger("device-os-flasher.claim-pool")

CLAIM_FILE_NAME = "device-claims.json"
CLAIM_TIMEOUT = timedelta(minutes=30)  # Auto-release after 30 min


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True  # exists, owned by someone else
    return True


class ClaimPool:
    """Tracks which session holds each device."""

    def __init__(self, state_dir: Path):
        self._pool_file = state_dir / CLAIM_FILE_NAME
        self._pool_file.parent.mkdir(parents=True, exist_ok=True)

    # ----------------------------------------------------------------
    # Public API
    # ----------------------------------------------------------------

    async def list_claims(self) -> list[DeviceClaim]:
        """List all current claims."""
        state = self._read_state()
        return list(state.claims.values())

    async def claim_devices(self, device_ids: list[str], session_id: str) -> list[str]:
        """Claim devices for exclusive use by a session.

        Devices already held by another live session are skipped.

        Returns:
            IDs of the devices now held by this session, in input order
        """
        with self._lock_pool_file():
            state = self._read_state()
            now = datetime.now(timezone.utc)
            claimed: list[str] = []

            for device_id in device_ids:
                existing = state.claims.get(device_id)
                if existing and existing.session_id != session_id and not self._is_stale(existing, now):
                    logger.warning(
                        "Device %s is claimed by session %s, skipping",
                        device_id, existing.session_id,
                    )
                    continue
                if not existing or existing.session_id != session_id:
                    state.claims[device_id] = DeviceClaim(
                        device_id=device_id,
                        session_id=session_id,
                        pid=os.getpid(),
                        claimed_at=now,
                    )
                claimed.append(device_id)

            state.updated_at = now
            self._write_state(state)

        if claimed:
            logger.debug("Claimed %d device(s) for session %s", len(claimed), session_id)
        return claimed

    async def release_device(self, device_id: str, session_id: str | None = None) -> None:
        """Release a claimed device.

        Raises:
            ClaimError: If the device is claimed by a different session
        """
        with self._lock_pool_file():
            state = self._read_state()

            claim = state.claims.get(device_id)
            if not claim:
                logger.warning("Device %s was not claimed, ignoring release", device_id)
                return

            if session_id and claim.session_id != session_id:
                raise ClaimError(
                    f"Device {device_id} is claimed by session {claim.session_id}, "
                    f"cannot release by session {session_id}",
                    tool="pool",
                )

            del state.claims[device_id]
            state.updated_at = datetime.now(timezone.utc)
            self._write_state(state)

        logger.debug("Device released: %s", device_id)

    async def release_session(self, session_id: str) -> list[str]:
        """Release every claim held by a session. Returns the released IDs."""
        with self._lock_pool_file():
            state = self._read_state()
            released = [
                device_id for device_id, claim in state.claims.items()
                if claim.session_id == session_id
            ]
            for device_id in released:
                del state.claims[device_id]
            if released:
                state.updated_at = datetime.now(timezone.utc)
                self._write_state(state)
        return released

    async def cleanup_stale_claims(self) -> list[str]:
        """Drop expired or orphaned claims. Returns the released IDs."""
        with self._lock_pool_file():
            state = self._read_state()
            now = datetime.now(timezone.utc)
            released = []

            for device_id, claim in list(state.claims.items()):
                if self._is_stale(claim, now):
                    age_minutes = int((now - claim.claimed_at).total_seconds() / 60)
                    logger.warning(
                        "Released device %s - claimed by %s %d minutes ago (stale)",
                        device_id, claim.session_id, age_minutes,
                    )
                    del state.claims[device_id]
                    released.append(device_id)

            if released:
                state.updated_at = now
                self._write_state(state)

            return released

    # ----------------------------------------------------------------
    # Internal helpers
    # ----------------------------------------------------------------

    @staticmethod
    def _is_stale(claim: DeviceClaim, now: datetime) -> bool:
        if now - claim.claimed_at > CLAIM_TIMEOUT:
            return True
        return claim.pid is not None and not _pid_alive(claim.pid)

    def _read_state(self) -> DeviceClaimState:
        """Read claim state from disk."""
        if not self._pool_file.exists():
            return DeviceClaimState(updated_at=datetime.now(timezone.utc), claims={})

        try:
            data = json.loads(self._pool_file.read_text())
            return DeviceClaimState.model_validate(data)
        except Exception as e:
            logger.error("Failed to parse claim state file: %s", e)
            return DeviceClaimState(updated_at=datetime.now(timezone.utc), claims={})

    def _write_state(self, state: DeviceClaimState) -> None:
        """Write claim state to disk."""
        self._pool_file.write_text(state.model_dump_json(indent=2, exclude_none=True))

    @contextmanager
    def _lock_pool_file(self):
        """Context manager for exclusive file locking."""
        lock_file = self._pool_file.parent / "device-claims.lock"
        lock_file.touch(exist_ok=True)

        with open(lock_file, "r") as f:
            try:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                yield
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
