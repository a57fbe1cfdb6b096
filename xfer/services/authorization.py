"""
Persisted folder authorization.

Remembers the origin and destination folders across restarts as opaque
tokens stored in QSettings, and tracks the access handles opened for
them during this session so every one is released exactly once.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QSettings

from xfer.core.errors import AuthorizationResolutionError, HandleReleasedError
from xfer.core.models import Role


TOKEN_VERSION = 1


class AccessHandle:
    """
    Liveness handle for an authorized root folder.

    Paths can only be obtained through a live handle; after `release`
    every access raises HandleReleasedError.
    """

    def __init__(self, path: Path):
        self._path = path
        self._released = False

    @property
    def is_live(self) -> bool:
        return not self._released

    @property
    def path(self) -> Path:
        if self._released:
            raise HandleReleasedError(f"Access to {self._path} has been released")
        return self._path

    def resolve(self, *parts: str) -> Path:
        """Join parts onto the root through this handle."""
        return self.path.joinpath(*parts)

    def release(self) -> bool:
        """Release the handle. Returns False if it was already released."""
        if self._released:
            return False
        self._released = True
        return True

    def __repr__(self) -> str:
        state = "live" if self.is_live else "released"
        return f"AccessHandle({str(self._path)!r}, {state})"


@dataclass(frozen=True)
class Grant:
    """A resolved authorization for one root role."""
    role: Role
    path: Path
    token: str
    handle: AccessHandle
    stale: bool = False


def encode_token(path: Path) -> str:
    """Create an opaque token for a directory. Raises OSError if it cannot be read."""
    stat_result = path.stat()
    payload = {
        "v": TOKEN_VERSION,
        "path": str(path),
        "dev": stat_result.st_dev,
        "ino": stat_result.st_ino,
    }
    raw = json.dumps(payload, sort_keys=True).encode('utf-8')
    return base64.urlsafe_b64encode(raw).decode('ascii')


def decode_token(role: Role, token: str) -> dict:
    """Decode a token into its payload."""
    try:
        payload = json.loads(base64.urlsafe_b64decode(token.encode('ascii')))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise AuthorizationResolutionError(role.value, f"malformed token ({e})") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("path"), str):
        raise AuthorizationResolutionError(role.value, "token has no path")
    return payload


class AuthorizationStore:
    """
    Stores and resolves per-role folder grants.

    One instance is owned by the application's composition root.
    `grant`, `resolve` and `release_all` are serialized by a mutex since
    start-up resolution and shutdown release may come from different
    threads. Nothing here raises to the caller: failures are logged and
    reported as None.
    """

    GRANT_KEY = "grants/{role}"
    ROOT_KEY = "roots/{role}"

    def __init__(self, settings: Optional[QSettings] = None):
        self._settings = settings if settings is not None else QSettings()
        self._mutex = QMutex()
        self._handles: dict[Path, AccessHandle] = {}

    @property
    def active_handle_count(self) -> int:
        with QMutexLocker(self._mutex):
            return sum(1 for handle in self._handles.values() if handle.is_live)

    def grant(self, role: Role, path: Path | str) -> Optional[Grant]:
        """
        Authorize a folder the user just chose and remember it for role.

        Returns:
            The new Grant, or None if the folder cannot be read
        """
        path = Path(path).expanduser().absolute()
        with QMutexLocker(self._mutex):
            try:
                token = encode_token(path)
            except OSError as e:
                logging.warning(f"AuthorizationStore - Cannot grant {role.value} access to {path}: {e}")
                return None

            self._persist(role, path, token)
            handle = self._acquire(path)
            logging.info(f"AuthorizationStore - Granted {role.value} access to {path}")
            return Grant(role=role, path=path, token=token, handle=handle)

    def resolve(self, role: Role) -> Optional[Grant]:
        """
        Turn the persisted token for role back into a usable root.

        A stale token that still points at a readable folder is
        re-persisted and the grant is returned with `stale=True`.

        Returns:
            The Grant, or None when nothing is stored or it cannot be resolved
        """
        with QMutexLocker(self._mutex):
            token = self._settings.value(self.GRANT_KEY.format(role=role.value))
            if not token:
                logging.debug(f"AuthorizationStore - No stored {role.value} grant")
                return None

            try:
                path, stale = self._resolve_token(role, str(token))
            except AuthorizationResolutionError as e:
                logging.warning(f"AuthorizationStore - {e}")
                return None

            if stale:
                logging.info(f"AuthorizationStore - {role.value} grant for {path} is stale, refreshing")
                try:
                    token = encode_token(path)
                    self._persist(role, path, token)
                except OSError as e:
                    logging.warning(f"AuthorizationStore - Could not refresh {role.value} grant: {e}")

            handle = self._acquire(path)
            return Grant(role=role, path=path, token=str(token), handle=handle, stale=stale)

    def release_all(self) -> int:
        """
        Release every handle acquired this session.

        Safe to call more than once. Returns the number of handles released.
        """
        with QMutexLocker(self._mutex):
            released = sum(1 for handle in self._handles.values() if handle.release())
            self._handles.clear()
        if released:
            logging.info(f"AuthorizationStore - Released {released} access handle(s)")
        return released

    def last_root(self, role: Role) -> Optional[Path]:
        """Last folder granted for role, as remembered in settings."""
        value = self._settings.value(self.ROOT_KEY.format(role=role.value))
        return Path(str(value)) if value else None

    def forget(self, role: Role) -> None:
        """Remove the stored grant for role."""
        with QMutexLocker(self._mutex):
            self._settings.remove(self.GRANT_KEY.format(role=role.value))
            self._settings.remove(self.ROOT_KEY.format(role=role.value))
            self._settings.sync()

    def __enter__(self) -> 'AuthorizationStore':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release_all()

    # === Helpers (mutex held) ===

    def _resolve_token(self, role: Role, token: str) -> tuple[Path, bool]:
        payload = decode_token(role, token)
        path = Path(payload["path"])

        try:
            stat_result = path.stat()
        except OSError as e:
            raise AuthorizationResolutionError(role.value, f"{path} is not reachable ({e})") from e

        if not path.is_dir():
            raise AuthorizationResolutionError(role.value, f"{path} is not a directory")

        identity = (payload.get("dev"), payload.get("ino"))
        stale = (
            payload.get("v", 0) < TOKEN_VERSION
            or identity != (stat_result.st_dev, stat_result.st_ino)
        )
        return path, stale

    def _persist(self, role: Role, path: Path, token: str) -> None:
        self._settings.setValue(self.GRANT_KEY.format(role=role.value), token)
        self._settings.setValue(self.ROOT_KEY.format(role=role.value), str(path))
        self._settings.sync()
        if self._settings.status() != QSettings.Status.NoError:
            logging.warning(f"AuthorizationStore - Could not persist {role.value} grant: {self._settings.status()}")

    def _acquire(self, path: Path) -> AccessHandle:
        handle = self._handles.get(path)
        if handle is None or not handle.is_live:
            handle = AccessHandle(path)
            self._handles[path] = handle
        return handle
