"""Drive client against an in-memory Drive API served by ``httpx.MockTransport``."""

from __future__ import annotations

import json
import re
import tempfile
import unittest
from pathlib import Path

import httpx

from mdsbrowser.errors import RemoteAuthError, RemoteStorageError
from mdsbrowser.storage.drive import (
    FOLDER_MIME_TYPE,
    DriveClient,
    RemoteFile,
    download_destination_dir,
    escape_query_value,
    safe_local_name,
)


class FakeDrive:
    """Just enough of Drive v3 files/upload endpoints for the client."""

    def __init__(self, page_size: int | None = None) -> None:
        self.items: dict[str, dict] = {}
        self.requests: list[tuple[str, str]] = []
        self.page_size = page_size
        self.fail_with: int | None = None
        self._next_id = 0

    def add(self, name: str, parent: str, *, folder: bool = False, content: bytes = b"") -> str:
        self._next_id += 1
        item_id = f"{'folder' if folder else 'file'}-{self._next_id}"
        self.items[item_id] = {"name": name, "parent": parent, "folder": folder, "content": content}
        return item_id

    def children(self, parent: str) -> list[dict]:
        return [item for item in self.items.values() if item["parent"] == parent]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        if request.headers.get("Authorization") != "Bearer test-token":
            return httpx.Response(401, json={"error": {"message": "Invalid Credentials"}})
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": {"message": "Backend Error"}})

        if request.method == "GET" and path == "/drive/v3/files":
            return self._list(request)
        if request.method == "POST" and path == "/drive/v3/files":
            body = json.loads(request.content)
            self.assertions_folder_body(body)
            return httpx.Response(200, json={"id": self.add(body["name"], body["parents"][0], folder=True)})
        if request.method == "POST" and path == "/upload/drive/v3/files":
            metadata = json.loads(re.search(rb"\{[^{}]*\}", request.content).group(0))
            content = request.content.split(b"Content-Type: text/markdown\r\n\r\n", 1)[1].rsplit(b"\r\n--", 1)[0]
            return httpx.Response(200, json={"id": self.add(metadata["name"], metadata["parents"][0], content=content)})
        if request.method == "PATCH" and path.startswith("/upload/drive/v3/files/"):
            self.items[path.rsplit("/", 1)[1]]["content"] = request.content
            return httpx.Response(200, json={})
        if request.method == "GET" and path.startswith("/drive/v3/files/"):
            item = self.items.get(path.rsplit("/", 1)[1])
            if item is None:
                return httpx.Response(404, json={"error": {"message": "File not found"}})
            return httpx.Response(200, content=item["content"])
        return httpx.Response(400)

    @staticmethod
    def assertions_folder_body(body: dict) -> None:
        if body.get("mimeType") != FOLDER_MIME_TYPE:
            raise AssertionError(f"unexpected folder body: {body}")

    def _list(self, request: httpx.Request) -> httpx.Response:
        query = request.url.params["q"]
        parent = re.search(r"'([^']*)' in parents", query).group(1)
        name = re.search(r"name='([^']*)'", query)
        only_folders = f"mimeType='{FOLDER_MIME_TYPE}'" in query
        no_folders = f"mimeType != '{FOLDER_MIME_TYPE}'" in query
        matches = [
            {"id": item_id, "name": item["name"]}
            for item_id, item in self.items.items()
            if item["parent"] == parent
            and (name is None or item["name"] == name.group(1))
            and (not only_folders or item["folder"])
            and (not no_folders or not item["folder"])
        ]
        matches.sort(key=lambda item: item["name"])
        payload: dict = {"files": matches}
        if self.page_size is not None:
            start = int(request.url.params.get("pageToken", "0"))
            payload["files"] = matches[start : start + self.page_size]
            if start + self.page_size < len(matches):
                payload["nextPageToken"] = str(start + self.page_size)
        return httpx.Response(200, json=payload)


def _client(drive: FakeDrive, tmp: Path, token: str = "test-token") -> DriveClient:
    def token_provider() -> str:
        if not token:
            raise RemoteAuthError("no token")
        return token

    return DriveClient(
        token_provider,
        skills_dir=tmp / "skills",
        cwd=tmp / "cwd",
        transport=drive.transport(),
    )


class DriveListTests(unittest.TestCase):
    def test_first_listing_creates_workspace_folders(self) -> None:
        drive = FakeDrive()
        with tempfile.TemporaryDirectory() as tmp:
            files = _client(drive, Path(tmp)).list_workspace_files()

        self.assertEqual(files, [])
        (app_id, app), = [(item_id, item) for item_id, item in drive.items.items() if item["parent"] == "root"]
        self.assertEqual(app["name"], "gemini-cli")
        self.assertEqual([item["name"] for item in drive.children(app_id)], ["md-files"])
        self.assertEqual([method for method, _path in drive.requests].count("POST"), 2)

    def test_listing_reuses_folders_and_skips_subfolders(self) -> None:
        drive = FakeDrive()
        app_id = drive.add("gemini-cli", "root", folder=True)
        workspace = drive.add("md-files", app_id, folder=True)
        drive.add("notes.md", workspace)
        drive.add("AGENTS.md", workspace)
        drive.add("archive", workspace, folder=True)

        with tempfile.TemporaryDirectory() as tmp:
            files = _client(drive, Path(tmp)).list_workspace_files()

        self.assertEqual([file.name for file in files], ["AGENTS.md", "notes.md"])
        self.assertNotIn("POST", [method for method, _path in drive.requests])

    def test_listing_follows_page_tokens(self) -> None:
        drive = FakeDrive(page_size=1)
        app_id = drive.add("gemini-cli", "root", folder=True)
        workspace = drive.add("md-files", app_id, folder=True)
        for name in ("a.md", "b.md", "c.md"):
            drive.add(name, workspace)

        with tempfile.TemporaryDirectory() as tmp:
            files = _client(drive, Path(tmp)).list_workspace_files()

        self.assertEqual([file.name for file in files], ["a.md", "b.md", "c.md"])

    def test_api_errors_fail_soft_with_warning(self) -> None:
        drive = FakeDrive()
        drive.fail_with = 500

        with tempfile.TemporaryDirectory() as tmp, self.assertLogs("mdsbrowser.storage.drive", level="WARNING"):
            files = _client(drive, Path(tmp)).list_workspace_files()

        self.assertEqual(files, [])

    def test_missing_token_is_raised(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(RemoteAuthError):
                _client(FakeDrive(), Path(tmp), token="").list_workspace_files()


class DriveTransferTests(unittest.TestCase):
    def test_upload_creates_new_file_in_workspace(self) -> None:
        drive = FakeDrive()
        with tempfile.TemporaryDirectory() as tmp:
            local = Path(tmp) / "GEMINI.md"
            local.write_text("# memory\n", encoding="utf-8")

            _client(drive, Path(tmp)).upload_file(str(local))

        uploaded = [item for item in drive.items.values() if not item["folder"]]
        self.assertEqual(len(uploaded), 1)
        self.assertEqual(uploaded[0]["name"], "GEMINI.md")
        self.assertEqual(uploaded[0]["content"], b"# memory\n")
        self.assertEqual(drive.items[uploaded[0]["parent"]]["name"], "md-files")

    def test_upload_overwrites_same_named_file(self) -> None:
        drive = FakeDrive()
        app_id = drive.add("gemini-cli", "root", folder=True)
        workspace = drive.add("md-files", app_id, folder=True)
        existing = drive.add("GEMINI.md", workspace, content=b"old")

        with tempfile.TemporaryDirectory() as tmp:
            local = Path(tmp) / "GEMINI.md"
            local.write_bytes(b"new")
            _client(drive, Path(tmp)).upload_file(str(local))

        self.assertEqual(len(drive.children(workspace)), 1)
        self.assertEqual(drive.items[existing]["content"], b"new")
        self.assertIn(("PATCH", f"/upload/drive/v3/files/{existing}"), drive.requests)

    def test_upload_of_unreadable_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(RemoteStorageError):
                _client(FakeDrive(), Path(tmp)).upload_file(str(Path(tmp) / "missing.md"))

    def test_transport_error_becomes_storage_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with tempfile.TemporaryDirectory() as tmp:
            local = Path(tmp) / "GEMINI.md"
            local.write_bytes(b"x")
            client = DriveClient(lambda: "test-token", skills_dir=Path(tmp), transport=httpx.MockTransport(handler))
            with self.assertRaisesRegex(RemoteStorageError, "Drive request failed"):
                client.upload_file(str(local))

    def test_agent_download_lands_in_skills_dir(self) -> None:
        drive = FakeDrive()
        file_id = drive.add("spec.agents", "somewhere", content=b"agent body")

        with tempfile.TemporaryDirectory() as tmp:
            destination = _client(drive, Path(tmp)).download_file(file_id, "spec.agents")

            self.assertEqual(destination, str(Path(tmp) / "skills" / "spec.agents"))
            self.assertEqual(Path(destination).read_bytes(), b"agent body")

    def test_memory_download_lands_in_working_directory(self) -> None:
        drive = FakeDrive()
        file_id = drive.add("GEMINI.md", "somewhere", content=b"memory")

        with tempfile.TemporaryDirectory() as tmp:
            destination = _client(drive, Path(tmp)).download_file(file_id, "GEMINI.md")

            self.assertEqual(destination, str(Path(tmp) / "cwd" / "GEMINI.md"))

    def test_download_error_uses_api_message(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaisesRegex(RemoteStorageError, "404: File not found"):
                _client(FakeDrive(), Path(tmp)).download_file("nope", "GEMINI.md")


class DriveHelperTests(unittest.TestCase):
    def test_query_values_are_escaped(self) -> None:
        self.assertEqual(escape_query_value("it's"), "it\\'s")
        self.assertEqual(escape_query_value("a\\b"), "a\\\\b")

    def test_destination_dir_by_name(self) -> None:
        skills = Path("/skills")
        self.assertEqual(download_destination_dir("team.AGENTS.md", skills_dir=skills, cwd=Path("/w")), skills)
        self.assertEqual(download_destination_dir("notes.md", skills_dir=skills, cwd=Path("/w")), Path("/w"))

    def test_remote_names_cannot_escape_destination(self) -> None:
        self.assertEqual(safe_local_name("../../etc/GEMINI.md"), "GEMINI.md")
        with self.assertRaises(RemoteStorageError):
            safe_local_name("..")

    def test_remote_file_is_value_object(self) -> None:
        self.assertEqual(RemoteFile(id="1", name="a.md"), RemoteFile(id="1", name="a.md"))


if __name__ == "__main__":
    unittest.main()
