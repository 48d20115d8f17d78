"""Remote storage backends for synced context documents."""

from .auth import ENV_DRIVE_TOKEN, resolve_access_token, token_provider_for
from .drive import DriveClient, RemoteFile, download_destination_dir

__all__ = [
    "ENV_DRIVE_TOKEN",
    "DriveClient",
    "RemoteFile",
    "download_destination_dir",
    "resolve_access_token",
    "token_provider_for",
]
