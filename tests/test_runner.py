"""
Tests for the process runner: output shaping, exit status, timeouts and cancellation.
"""

import os
import shutil
import threading
import time

import pytest

from sentinel.tools.runner import (
    MAX_OUTPUT_CHARS,
    NO_OUTPUT,
    PosixShell,
    PowerShell,
    ProcessRunner,
    combine,
    format_duration,
    select_interpreter,
    truncate,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="needs a POSIX shell")


@pytest.fixture
def runner():
    return ProcessRunner(PosixShell())


class TestShaping:
    def test_truncate_short_output_untouched(self):
        assert truncate("hello") == "hello"
        assert truncate("x" * MAX_OUTPUT_CHARS) == "x" * MAX_OUTPUT_CHARS

    def test_truncate_long_output(self):
        result = truncate("x" * 15000)
        assert result == "x" * 10000 + "\n... (truncated, 5000 more chars)"

    def test_combine_without_stderr(self):
        assert combine("out\n", "") == "out\n"

    def test_combine_with_stderr(self):
        assert combine("out\n", "err\n") == "out\n\nSTDERR:\nerr\n"

    @pytest.mark.parametrize("seconds, text", [(1.0, "1s"), (60, "60s"), (0.5, "0.5s")])
    def test_format_duration(self, seconds, text):
        assert format_duration(seconds) == text


class TestInterpreters:
    def test_posix_argv(self):
        assert PosixShell().argv("ls -l") == ["sh", "-c", "ls -l"]

    def test_powershell_argv(self):
        assert PowerShell().argv("dir") == [
            "powershell",
            "-NoProfile",
            "-NonInteractive",
            "-Command",
            "dir",
        ]

    @pytest.mark.parametrize(
        "platform, expected",
        [("linux", PosixShell), ("darwin", PosixShell), ("win32", PowerShell)],
    )
    def test_select_interpreter(self, platform, expected):
        assert isinstance(select_interpreter(platform), expected)


@posix_only
class TestRun:
    def test_success(self, runner, tmp_path):
        outcome = runner.run("echo hello", str(tmp_path), timeout=10)
        assert outcome.output == "hello\n"
        assert not outcome.is_error
        assert outcome.exit_code == 0
        assert not outcome.truncated

    def test_runs_in_working_dir(self, runner, workspace):
        outcome = runner.run("cat src/main.go", str(workspace), timeout=10)
        assert outcome.output == "package main\n"

    def test_stderr_and_exit_code(self, runner, tmp_path):
        outcome = runner.run("echo boom >&2; exit 1", str(tmp_path), timeout=10)
        assert outcome.is_error
        assert outcome.exit_code == 1
        assert "STDERR:\nboom" in outcome.output
        assert outcome.output.endswith("\nExit code: 1")

    def test_stderr_on_success_is_not_an_error(self, runner, tmp_path):
        outcome = runner.run("echo ok; echo warn >&2", str(tmp_path), timeout=10)
        assert not outcome.is_error
        assert outcome.output == "ok\n\nSTDERR:\nwarn\n"

    def test_empty_output_placeholder(self, runner, tmp_path):
        outcome = runner.run("true", str(tmp_path), timeout=10)
        assert outcome.output == NO_OUTPUT
        assert not outcome.is_error

    def test_long_output_is_truncated(self, runner, tmp_path):
        outcome = runner.run("yes a | head -c 15000", str(tmp_path), timeout=10)
        assert outcome.truncated
        assert outcome.original_length == 15000
        assert len(outcome.output) == 10000 + len("\n... (truncated, 5000 more chars)")
        assert outcome.output.endswith("\n... (truncated, 5000 more chars)")

    def test_timeout(self, runner, tmp_path):
        start = time.monotonic()
        outcome = runner.run("echo partial; sleep 120", str(tmp_path), timeout=1)
        assert time.monotonic() - start < 30
        assert outcome.is_error
        assert outcome.timed_out
        assert outcome.output == "Command timed out after 1s"
        assert "partial" not in outcome.output
        assert "Exit code" not in outcome.output

    def test_timeout_kills_process_group(self, runner, tmp_path):
        marker = tmp_path / "survived"
        outcome = runner.run(f"(sleep 2; touch {marker}) & sleep 120", str(tmp_path), timeout=1)
        assert outcome.timed_out
        time.sleep(2.5)
        assert not marker.exists()

    @pytest.mark.skipif(shutil.which("setsid") is None, reason="needs setsid")
    def test_timeout_with_detached_grandchild(self, runner, tmp_path):
        # the detached sleep keeps stdout open after the group is killed
        start = time.monotonic()
        outcome = runner.run("setsid sleep 6 & echo hi; sleep 120", str(tmp_path), timeout=1)
        assert time.monotonic() - start < 4
        assert outcome.timed_out
        assert outcome.output == "Command timed out after 1s"

    def test_cancel(self, runner, tmp_path):
        cancel = threading.Event()
        timer = threading.Timer(0.3, cancel.set)
        timer.start()
        try:
            outcome = runner.run("sleep 30", str(tmp_path), timeout=60, cancel=cancel)
        finally:
            timer.cancel()
        assert outcome.cancelled
        assert outcome.is_error
        assert not outcome.timed_out
        assert outcome.output == "Command cancelled"

    def test_cancel_flag_unset_completes(self, runner, tmp_path):
        outcome = runner.run("echo done", str(tmp_path), timeout=10, cancel=threading.Event())
        assert outcome.output == "done\n"

    def test_missing_working_dir(self, runner, tmp_path):
        outcome = runner.run("echo hi", str(tmp_path / "missing"), timeout=10)
        assert outcome.is_error
        assert outcome.output.startswith("Failed to start command:")

    def test_concurrent_runs_are_independent(self, runner, tmp_path):
        results = {}

        def work(n):
            results[n] = runner.run(f"echo {n}; exit {n}", str(tmp_path), timeout=10)

        threads = [threading.Thread(target=work, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for n, outcome in results.items():
            assert outcome.output.startswith(f"{n}\n")
            assert outcome.exit_code == n
            assert outcome.is_error == (n != 0)
