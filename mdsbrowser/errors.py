from __future__ import annotations


class MdsBrowserError(Exception):
    """Base error for the context-file browser."""


class ConfigError(MdsBrowserError):
    """Raised when persisted settings cannot be applied (e.g. clashing keys)."""


class RemoteStorageError(MdsBrowserError):
    """Raised when a Drive request fails at the transport or HTTP level."""


class RemoteAuthError(RemoteStorageError):
    """Raised when no Drive access token is available."""


class EditorLaunchError(MdsBrowserError):
    """Raised when the external editor cannot be spawned or exits non-zero."""
