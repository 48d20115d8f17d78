"""Google Drive client for the synced markdown workspace.

Three operations back the picker: list the workspace folder, upload a local
file into it (overwriting a same-named file), and download a file to disk.
The workspace folder is ``<app_folder>/<subfolder>`` under the Drive root and
is created on demand. Requests go through the Drive v3 REST API with a bearer
token supplied by :mod:`mdsbrowser.storage.auth`.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from collections.abc import Mapping
from typing import Any

import httpx

from ..errors import RemoteStorageError
from ..runtime.config import DEFAULT_DRIVE_APP_FOLDER, DEFAULT_DRIVE_SUBFOLDER, DriveSettings
from ..sources import has_agent_suffix
from .auth import TokenProvider

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
MARKDOWN_MIME_TYPE = "text/markdown"


@dataclass(frozen=True)
class RemoteFile:
    id: str
    name: str


def escape_query_value(value: str) -> str:
    # Drive query literals are single-quoted; backslash and quote need escaping.
    return value.replace("\\", "\\\\").replace("'", "\\'")


def download_destination_dir(name: str, *, skills_dir: Path, cwd: Path | None = None) -> Path:
    """Agent files go to the per-user skills directory, the rest to ``cwd``."""
    if has_agent_suffix(name):
        return skills_dir
    return cwd if cwd is not None else Path.cwd()


def safe_local_name(name: str) -> str:
    """Strip any directory components a remote name might carry."""
    local = Path(name.replace("\\", "/")).name
    if local in ("", ".", ".."):
        raise RemoteStorageError(f"Refusing to write remote file with unsafe name: {name!r}")
    return local


class DriveClient:
    """Synchronous Drive client; calls block and are meant for worker threads.

    Purpose:
      - list_workspace_files() -> list[RemoteFile]
      - upload_file(local_path) -> None
      - download_file(file_id, name) -> str

    Key behavior:
      - Finds or creates the two-level workspace folder before list/upload.
      - Listing fails soft (empty list) once credentials are available.
      - Upload and download raise :class:`RemoteStorageError`.
    """

    BASE_URL = "https://www.googleapis.com"
    FILES_PATH = "/drive/v3/files"
    UPLOAD_PATH = "/upload/drive/v3/files"

    def __init__(
        self,
        token_provider: TokenProvider,
        *,
        skills_dir: Path,
        app_folder: str = DEFAULT_DRIVE_APP_FOLDER,
        subfolder: str = DEFAULT_DRIVE_SUBFOLDER,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        cwd: Path | None = None,
    ) -> None:
        self._token_provider = token_provider
        self.skills_dir = skills_dir
        self.app_folder = app_folder
        self.subfolder = subfolder
        self._timeout = float(timeout)
        self._transport = transport
        self._cwd = cwd

    @classmethod
    def from_settings(
        cls,
        settings: DriveSettings,
        token_provider: TokenProvider,
        *,
        skills_dir: Path,
    ) -> DriveClient:
        return cls(
            token_provider,
            skills_dir=skills_dir,
            app_folder=settings.app_folder,
            subfolder=settings.subfolder,
            timeout=settings.timeout_seconds,
        )

    def _create_client(self) -> httpx.Client:
        # Token lookup happens here so a missing token raises RemoteAuthError
        # before any request is attempted.
        token = self._token_provider()
        return httpx.Client(
            base_url=self.BASE_URL,
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            timeout=self._timeout,
            transport=self._transport,
        )

    def _request(self, client: httpx.Client, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteStorageError(f"Drive request failed: {exc}") from exc
        self._raise_for_status(resp)
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        try:
            payload = resp.json()
        except ValueError as exc:
            raise RemoteStorageError("Drive returned a non-JSON response") from exc
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return
        message = resp.reason_phrase or "error"
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, Mapping):
            error = payload.get("error")
            if isinstance(error, Mapping) and isinstance(error.get("message"), str):
                message = error["message"]
        raise RemoteStorageError(f"Drive API error {resp.status_code}: {message}")

    def _list(self, client: httpx.Client, query: str, fields: str = "nextPageToken, files(id, name)") -> list[RemoteFile]:
        files: list[RemoteFile] = []
        page_token: str | None = None
        while True:
            params = {"q": query, "fields": fields, "spaces": "drive", "orderBy": "name"}
            if page_token:
                params["pageToken"] = page_token
            payload = self._json(self._request(client, "GET", self.FILES_PATH, params=params))
            for item in payload.get("files") or []:
                file_id = item.get("id")
                name = item.get("name")
                if isinstance(file_id, str) and isinstance(name, str):
                    files.append(RemoteFile(id=file_id, name=name))
            page_token = payload.get("nextPageToken")
            if not page_token:
                return files

    def _find_folder(self, client: httpx.Client, name: str, parent_id: str) -> str | None:
        query = (
            f"name='{escape_query_value(name)}' and mimeType='{FOLDER_MIME_TYPE}' "
            f"and '{escape_query_value(parent_id)}' in parents and trashed=false"
        )
        found = self._list(client, query)
        return found[0].id if found else None

    def _create_folder(self, client: httpx.Client, name: str, parent_id: str) -> str:
        resp = self._request(
            client,
            "POST",
            self.FILES_PATH,
            params={"fields": "id"},
            json={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
        )
        folder_id = self._json(resp).get("id")
        if not isinstance(folder_id, str):
            raise RemoteStorageError(f"Drive did not return an id for folder {name!r}")
        logger.info("created Drive folder %s under %s", name, parent_id)
        return folder_id

    def _find_or_create_folder(self, client: httpx.Client, name: str, parent_id: str) -> str:
        folder_id = self._find_folder(client, name, parent_id)
        if folder_id is None:
            folder_id = self._create_folder(client, name, parent_id)
        return folder_id

    def workspace_folder_id(self, client: httpx.Client) -> str:
        """Resolve ``<app_folder>/<subfolder>``, creating either level when missing."""
        app_folder_id = self._find_or_create_folder(client, self.app_folder, "root")
        return self._find_or_create_folder(client, self.subfolder, app_folder_id)

    def list_workspace_files(self) -> list[RemoteFile]:
        """List files in the workspace folder (sorted by name)."""
        with self._create_client() as client:
            try:
                folder_id = self.workspace_folder_id(client)
                query = (
                    f"'{escape_query_value(folder_id)}' in parents and trashed=false "
                    f"and mimeType != '{FOLDER_MIME_TYPE}'"
                )
                return self._list(client, query)
            except RemoteStorageError as exc:
                logger.warning("Failed to list files from Drive: %s", exc)
                return []

    def _multipart_body(self, metadata: dict[str, Any], content: bytes) -> tuple[bytes, str]:
        boundary = f"mdsbrowser-{uuid.uuid4().hex}"
        head = (
            f"--{boundary}\r\n"
            "Content-Type: application/json; charset=UTF-8\r\n\r\n"
            f"{json.dumps(metadata)}\r\n"
            f"--{boundary}\r\n"
            f"Content-Type: {MARKDOWN_MIME_TYPE}\r\n\r\n"
        ).encode("utf-8")
        tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
        return head + content + tail, f"multipart/related; boundary={boundary}"

    def upload_file(self, local_path: str) -> None:
        """Upload ``local_path`` into the workspace folder, replacing a same-named file."""
        path = Path(local_path)
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise RemoteStorageError(f"Cannot read {local_path}: {exc}") from exc

        with self._create_client() as client:
            folder_id = self.workspace_folder_id(client)
            query = (
                f"name='{escape_query_value(path.name)}' and "
                f"'{escape_query_value(folder_id)}' in parents and trashed=false"
            )
            existing = self._list(client, query, fields="nextPageToken, files(id, name)")
            if existing:
                self._request(
                    client,
                    "PATCH",
                    f"{self.UPLOAD_PATH}/{existing[0].id}",
                    params={"uploadType": "media"},
                    content=content,
                    headers={"Content-Type": MARKDOWN_MIME_TYPE},
                )
                logger.info("updated %s on Drive (%s)", path.name, existing[0].id)
                return
            body, content_type = self._multipart_body({"name": path.name, "parents": [folder_id]}, content)
            self._request(
                client,
                "POST",
                self.UPLOAD_PATH,
                params={"uploadType": "multipart", "fields": "id"},
                content=body,
                headers={"Content-Type": content_type},
            )
            logger.info("uploaded %s to Drive", path.name)

    def download_file(self, file_id: str, name: str) -> str:
        """Download ``file_id`` and return the local path it was written to."""
        local_name = safe_local_name(name)
        with self._create_client() as client:
            resp = self._request(client, "GET", f"{self.FILES_PATH}/{file_id}", params={"alt": "media"})
        dest_dir = download_destination_dir(name, skills_dir=self.skills_dir, cwd=self._cwd)
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            local_path = dest_dir / local_name
            local_path.write_bytes(resp.content)
        except OSError as exc:
            raise RemoteStorageError(f"Cannot write {local_name} to {dest_dir}: {exc}") from exc
        return str(local_path)
