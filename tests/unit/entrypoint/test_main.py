"""CLI argument handling, listing mode, and post-overlay feedback."""

from __future__ import annotations

import io
import os
import sys
import tempfile
import unittest
from contextlib import contextmanager
from pathlib import Path
from unittest import mock

from mdsbrowser import cli
from mdsbrowser.feedback import FeedbackBus
from mdsbrowser.runtime.loop import OverlayLoopDeps
from mdsbrowser.runtime.tasks import BackgroundTasks, run_inline
from mdsbrowser.storage.drive import RemoteFile


class _Tty(io.StringIO):
    def isatty(self) -> bool:
        return True


class _FakeTerminal:
    stdin_fd = 0

    @contextmanager
    def raw_mode(self):
        yield

    @contextmanager
    def suspended(self):
        yield


class _DownloadStorage:
    def __init__(self) -> None:
        self.downloads: list[str] = []

    def list_workspace_files(self):
        return [RemoteFile(id="r1", name="spec.agents")]

    def upload_file(self, local_path: str) -> None:
        pass

    def download_file(self, file_id: str, name: str) -> str:
        self.downloads.append(name)
        return f"/skills/{name}"


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name).resolve()
        (self.root / "repo").mkdir()
        (self.root / "repo" / "GEMINI.md").write_text("# memory\n", encoding="utf-8")
        agents = self.root / "repo" / ".gemini" / "agents"
        agents.mkdir(parents=True)
        (agents / "helper.md").write_text("helper\n", encoding="utf-8")
        patches = [
            mock.patch("mdsbrowser.cli.load_global_dir", return_value=self.root / "global"),
            mock.patch("mdsbrowser.cli.load_memory_filenames", return_value=None),
            mock.patch("mdsbrowser.cli.load_keybinding_overrides", return_value={}),
            mock.patch("mdsbrowser.cli.load_preferred_editor", return_value=None),
            mock.patch("mdsbrowser.cli.load_skills_dir", return_value=self.root / "skills"),
            mock.patch("mdsbrowser.cli.configure_logging"),
        ]
        for patcher in patches:
            patcher.start()
            self.addCleanup(patcher.stop)
        self.addCleanup(self.tmp.cleanup)

    def test_list_prints_kind_and_path(self) -> None:
        stdout = io.StringIO()
        with mock.patch.object(sys, "stdout", stdout), mock.patch("mdsbrowser.cli.run_overlay") as run_overlay:
            cli.main(["--list", str(self.root / "repo")])

        run_overlay.assert_not_called()
        self.assertEqual(
            stdout.getvalue().splitlines(),
            [
                f"Agent\t{self.root / 'repo' / '.gemini' / 'agents' / 'helper.md'}",
                f"Memory\t{self.root / 'repo' / 'GEMINI.md'}",
            ],
        )

    def test_non_tty_stdin_falls_back_to_listing(self) -> None:
        stdout = io.StringIO()
        with mock.patch.object(sys, "stdin", io.StringIO()), mock.patch.object(sys, "stdout", stdout), mock.patch(
            "mdsbrowser.cli.run_overlay"
        ) as run_overlay:
            cli.main([str(self.root / "repo")])

        run_overlay.assert_not_called()
        self.assertIn("GEMINI.md", stdout.getvalue())

    def test_missing_root_exits(self) -> None:
        with self.assertRaises(SystemExit):
            cli.main(["--list", str(self.root / "absent")])

    def test_overlay_run_prints_only_feedback_after_close(self) -> None:
        bus = FeedbackBus()
        stdout = io.StringIO()
        stderr = io.StringIO()

        def fake_run_overlay(source, storage, config, *, on_close, feedback):
            self.assertEqual(config.preferred_editor, "zed")
            feedback.emit_feedback("info", "Downloading GEMINI.md...")
            on_close()
            feedback.emit_feedback("info", "File downloaded to: /tmp/GEMINI.md")
            feedback.emit_feedback("error", "Upload failed: quota")
            return mock.Mock(tasks=BackgroundTasks(spawn=run_inline), unshown_feedback=[])

        with mock.patch.object(sys, "stdin", _Tty()), mock.patch.object(sys, "stdout", stdout), mock.patch.object(
            sys, "stderr", stderr
        ), mock.patch("mdsbrowser.cli.run_overlay", side_effect=fake_run_overlay):
            cli.main(["--editor", "zed", str(self.root / "repo")], feedback=bus)

        self.assertEqual(stdout.getvalue(), "File downloaded to: /tmp/GEMINI.md\n")
        self.assertEqual(stderr.getvalue(), "Upload failed: quota\n")

    def test_download_result_is_printed_after_overlay_closes(self) -> None:
        bus = FeedbackBus()
        stdout = io.StringIO()
        storage = _DownloadStorage()
        real_run_overlay = cli.run_overlay

        def scripted_run_overlay(source, storage, config, *, on_close, feedback):
            keys = ["ALT_I", "", "ENTER_CR", ""]
            deps = OverlayLoopDeps(
                read_key=lambda _fd, _timeout_ms=None: keys.pop(0) if keys else "ESC",
                render=mock.Mock(),
                get_terminal_size=lambda _fallback: os.terminal_size((80, 24)),
            )
            return real_run_overlay(
                source,
                storage,
                config,
                on_close=on_close,
                feedback=feedback,
                tasks=BackgroundTasks(spawn=run_inline),
                terminal=_FakeTerminal(),
                deps=deps,
            )

        with mock.patch.object(sys, "stdin", _Tty()), mock.patch.object(sys, "stdout", stdout), mock.patch(
            "mdsbrowser.cli.DriveClient.from_settings", return_value=storage
        ), mock.patch("mdsbrowser.cli.token_provider_for"), mock.patch(
            "mdsbrowser.cli.run_overlay", side_effect=scripted_run_overlay
        ):
            cli.main([str(self.root / "repo")], feedback=bus)

        self.assertEqual(storage.downloads, ["spec.agents"])
        self.assertIn("File downloaded to: /skills/spec.agents", stdout.getvalue().splitlines())

    def test_save_editor_persists_preference(self) -> None:
        with mock.patch("mdsbrowser.cli.save_preferred_editor") as save_mock, mock.patch.object(
            sys, "stdout", io.StringIO()
        ):
            cli.main(["--list", "--editor", "neovim", "--save-editor", str(self.root / "repo")])

        save_mock.assert_called_once_with("neovim")

    def test_save_editor_without_editor_exits(self) -> None:
        with self.assertRaises(SystemExit):
            cli.main(["--save-editor", "--list", str(self.root / "repo")])

    def test_invalid_keybindings_exit_before_overlay(self) -> None:
        with mock.patch.object(sys, "stdin", _Tty()), mock.patch(
            "mdsbrowser.cli.load_keybinding_overrides", return_value={"close": ("ALT_U",)}
        ), mock.patch("mdsbrowser.cli.run_overlay") as run_overlay:
            with self.assertRaises(SystemExit) as ctx:
                cli.main([str(self.root / "repo")])

        run_overlay.assert_not_called()
        self.assertIn("Invalid keybindings", str(ctx.exception))


class WaitForBackgroundWorkTests(unittest.TestCase):
    def test_returns_false_when_grace_period_ends(self) -> None:
        tasks = BackgroundTasks(spawn=lambda _target, _name: None)
        tasks.submit("drive-download", lambda: None)
        now = [0.0]

        def sleep(seconds: float) -> None:
            now[0] += seconds

        self.assertFalse(cli.wait_for_background_work(tasks, 0.2, clock=lambda: now[0], sleep=sleep))

    def test_drains_finished_work(self) -> None:
        tasks = BackgroundTasks(spawn=run_inline)
        done: list[str] = []
        tasks.submit("drive-download", lambda: None, lambda outcome: done.append(outcome.name))

        self.assertTrue(cli.wait_for_background_work(tasks, 0.0))
        self.assertEqual(done, ["drive-download"])


if __name__ == "__main__":
    unittest.main()
