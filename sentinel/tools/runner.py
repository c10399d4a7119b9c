# sentinel/tools/runner.py
"""
Spawn a command through the host's shell under a hard deadline.

The child runs in its own session so a timeout or cancellation can take down
everything it started, not only the shell. Output produced before a timeout is
discarded; the caller gets a timeout notice instead.
"""

import os
import signal
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from logging import Logger
from typing import List, Optional

from sentinel.config import config

MAX_OUTPUT_CHARS = 10000
DEFAULT_TIMEOUT = 60.0
NO_OUTPUT = "(no output)"

# How often a running child is checked for cancellation
POLL_INTERVAL = 0.1
# How long pipes are drained after a kill before they are closed
KILL_GRACE = 1.0


@dataclass(frozen=True)
class ExecutionOutcome:
    output: str
    is_error: bool = False
    timed_out: bool = False
    cancelled: bool = False
    exit_code: Optional[int] = None
    truncated: bool = False
    original_length: int = 0


class Interpreter:
    """Builds the argv that hands a command string to a command interpreter."""

    name: str = ""

    def argv(self, command: str) -> List[str]:
        raise NotImplementedError


class PosixShell(Interpreter):
    name = "sh"

    def argv(self, command: str) -> List[str]:
        return ["sh", "-c", command]


class PowerShell(Interpreter):
    name = "powershell"

    def argv(self, command: str) -> List[str]:
        return ["powershell", "-NoProfile", "-NonInteractive", "-Command", command]


def select_interpreter(platform: str = sys.platform) -> Interpreter:
    if platform.startswith("win"):
        return PowerShell()
    return PosixShell()


def truncate(output: str, limit: int = MAX_OUTPUT_CHARS) -> str:
    if len(output) <= limit:
        return output
    return output[:limit] + f"\n... (truncated, {len(output) - limit} more chars)"


def combine(stdout: str, stderr: str) -> str:
    output = stdout
    if stderr:
        output += "\nSTDERR:\n" + stderr
    return output


def format_duration(seconds: float) -> str:
    return f"{seconds:g}s"


class ProcessRunner:
    """
    Runs one command per call; calls share nothing but the interpreter choice,
    so they may run concurrently from separate threads.
    """

    def __init__(self, interpreter: Optional[Interpreter] = None):
        self.interpreter = interpreter if interpreter else select_interpreter()

        self.logger: Logger = config.get_logger("logger", self.__class__.__name__)
        self.logger.debug(f"Initialized ProcessRunner using {self.interpreter.name}.")

    def _spawn(self, command: str, working_dir: Optional[str]) -> subprocess.Popen:
        kwargs = {}
        if os.name == "nt":
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True
        return subprocess.Popen(
            self.interpreter.argv(command),
            cwd=working_dir or None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            **kwargs,
        )

    def _kill(self, process: subprocess.Popen) -> None:
        """Terminate the child and everything in its process group, then reap it."""
        try:
            if os.name == "nt":
                process.kill()
            else:
                os.killpg(process.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            process.kill()
        # drain the pipes so the child can be reaped; the output is discarded
        try:
            process.communicate(timeout=KILL_GRACE)
        except subprocess.TimeoutExpired:
            # a process that left the group (setsid, a daemon) still holds the pipes
            self.logger.warning(f"Abandoning pipes still held open after killing pid={process.pid}")
            for stream in (process.stdout, process.stderr):
                stream.close()
            process.wait()

    def run(
        self,
        command: str,
        working_dir: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        cancel: Optional[threading.Event] = None,
    ) -> ExecutionOutcome:
        try:
            process = self._spawn(command, working_dir)
        except OSError as e:
            self.logger.error(f"Could not spawn {self.interpreter.name}: {e}")
            return ExecutionOutcome(output=f"Failed to start command: {e}", is_error=True)

        self.logger.debug(f"Spawned pid={process.pid} (timeout {format_duration(timeout)})")
        deadline = time.monotonic() + timeout

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._kill(process)
                message = f"Command timed out after {format_duration(timeout)}"
                self.logger.warning(f"{message} (pid={process.pid})")
                return ExecutionOutcome(output=message, is_error=True, timed_out=True)
            if cancel is not None and cancel.is_set():
                self._kill(process)
                self.logger.warning(f"Command cancelled (pid={process.pid})")
                return ExecutionOutcome(output="Command cancelled", is_error=True, cancelled=True)

            wait = remaining if cancel is None else min(remaining, POLL_INTERVAL)
            try:
                stdout, stderr = process.communicate(timeout=wait)
                break
            except subprocess.TimeoutExpired:
                continue

        exit_code = process.returncode
        output = combine(stdout, stderr)
        if exit_code != 0:
            output += f"\nExit code: {exit_code}"
        if not output:
            output = NO_OUTPUT

        original_length = len(output)
        output = truncate(output)
        self.logger.debug(f"Finished pid={process.pid} (exit {exit_code}, {original_length} chars)")

        return ExecutionOutcome(
            output=output,
            is_error=exit_code != 0,
            exit_code=exit_code,
            truncated=original_length > MAX_OUTPUT_CHARS,
            original_length=original_length,
        )
