# sentinel/tools/shell.py
"""
Warning: Running untrusted code is never safe - pattern guards cannot change this.
See https://wiki.archlinux.org/title/Firejail for sandboxing.
Warning: Agents should be given the least amount privilege possible.
See https://unix.stackexchange.com/q/219922 for setting up a user for agents.

Models may hallucinate or become creative in problem solving taking unexpected paths to achieve a goal.
The exec tool therefore runs every command through three stages:

1. CommandGuard rejects destructive idioms (rm -rf, mkfs, fork bombs, curl | sh, ...)
   and, when an allowlist is configured, anything that is not on it.
2. WorkspaceChecker rejects traversal tricks and absolute paths outside the working
   directory, when workspace restriction is enabled.
3. ProcessRunner spawns the shell under a timeout and shapes the output.

Nothing is spawned unless the first two stages allow it.

Configuration is owned by the tool instance. Finish calling the setters before the
tool is handed to concurrent callers; execute() only reads it.
"""

import os
import threading
from dataclasses import dataclass, field
from logging import Logger
from typing import Any, Dict, List, Optional

from sentinel.config import config
from sentinel.tools.base import Tool, ToolResult, error_result, text_result
from sentinel.tools.guard import CommandGuard, ConfigurationError
from sentinel.tools.runner import DEFAULT_TIMEOUT, ProcessRunner
from sentinel.tools.workspace import WorkspaceChecker


@dataclass
class ExecConfig:
    working_dir: str = ""
    timeout: float = DEFAULT_TIMEOUT
    restrict_to_workspace: bool = True
    fail_closed: bool = True
    allow_patterns: List[str] = field(default_factory=list)

    @classmethod
    def from_config(cls) -> "ExecConfig":
        return cls.from_dict(config.get_value("exec", {}) or {})

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> "ExecConfig":
        """Raises ConfigurationError when a value in the exec section has the wrong type."""
        timeout = section.get("timeout", DEFAULT_TIMEOUT)
        if isinstance(timeout, bool):
            raise ConfigurationError(f"invalid exec.timeout {timeout!r}: must be a positive number")
        try:
            timeout = float(timeout)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid exec.timeout {timeout!r}: {e}") from e

        allow_patterns = section.get("allow_patterns", []) or []
        if not isinstance(allow_patterns, list):
            raise ConfigurationError(f"invalid exec.allow_patterns {allow_patterns!r}: must be a list")

        return cls(
            working_dir=section.get("working_dir", "") or "",
            timeout=timeout,
            restrict_to_workspace=bool(section.get("restrict_to_workspace", True)),
            fail_closed=bool(section.get("fail_closed", True)),
            allow_patterns=list(allow_patterns),
        )


class ExecTool(Tool):
    name = "exec"
    description = (
        "Execute a shell command and return its output. Use with caution. "
        "Destructive commands are blocked and, when workspace restriction is on, "
        "paths must stay inside the working directory."
    )

    def __init__(
        self,
        working_dir: str = "",
        restrict_to_workspace: bool = True,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        fail_closed: bool = True,
        allow_patterns: Optional[List[str]] = None,
        runner: Optional[ProcessRunner] = None,
    ):
        self.working_dir = working_dir
        self.guard = CommandGuard(allow_patterns=allow_patterns)
        self.runner = runner if runner else ProcessRunner()
        self.timeout = DEFAULT_TIMEOUT
        self.set_timeout(timeout)
        self.restrict_to_workspace = restrict_to_workspace
        self.workspace = WorkspaceChecker(fail_closed=fail_closed)

        self.logger: Logger = config.get_logger("logger", self.__class__.__name__)
        self.logger.debug("Initialized ExecTool instance.")

    @classmethod
    def from_config(
        cls,
        settings: Optional[ExecConfig] = None,
        runner: Optional[ProcessRunner] = None,
    ) -> "ExecTool":
        """Build the tool from the `exec` section of the settings file, unless settings are given."""
        if settings is None:
            settings = ExecConfig.from_config()
        return cls(
            settings.working_dir,
            settings.restrict_to_workspace,
            timeout=settings.timeout,
            fail_closed=settings.fail_closed,
            allow_patterns=settings.allow_patterns,
            runner=runner,
        )

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "The shell command to execute",
                },
                "working_dir": {
                    "type": "string",
                    "description": "Optional working directory for the command",
                },
            },
            "required": ["command"],
        }

    @property
    def settings(self) -> ExecConfig:
        return ExecConfig(
            working_dir=self.working_dir,
            timeout=self.timeout,
            restrict_to_workspace=self.restrict_to_workspace,
            fail_closed=self.workspace.fail_closed,
            allow_patterns=self.guard.allow_patterns,
        )

    def set_timeout(self, timeout: float) -> None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationError(f"invalid timeout {timeout!r}: must be a positive number")
        self.timeout = float(timeout)

    def set_restrict_to_workspace(self, restrict: bool) -> None:
        self.restrict_to_workspace = restrict

    def set_allow_patterns(self, patterns: List[str]) -> None:
        """Raises ConfigurationError on an invalid pattern and keeps the previous list."""
        self.guard.set_allow_patterns(patterns)

    def set_fail_closed(self, fail_closed: bool) -> None:
        self.workspace.fail_closed = fail_closed

    def resolve_working_dir(self, args: Dict[str, Any]) -> str:
        """explicit working_dir -> configured default -> process working directory"""
        override = args.get("working_dir")
        if isinstance(override, str) and override:
            return override
        if self.working_dir:
            return self.working_dir
        return os.getcwd()

    def check(self, command: str, working_dir: str) -> Optional[str]:
        """Returns the block reason for a command, or None when it may run."""
        verdict = self.guard.evaluate(command)
        if not verdict.allowed:
            return verdict.reason

        if self.restrict_to_workspace:
            verdict = self.workspace.check(command, working_dir)
            if not verdict.allowed:
                return verdict.reason

        return None

    def execute(
        self,
        args: Dict[str, Any],
        cancel: Optional[threading.Event] = None,
    ) -> ToolResult:
        command = args.get("command") if isinstance(args, dict) else None
        if not isinstance(command, str):
            return error_result("command is required")

        working_dir = self.resolve_working_dir(args)

        reason = self.check(command, working_dir)
        if reason:
            return error_result(f"Command blocked by safety guard ({reason})")

        outcome = self.runner.run(command, working_dir, self.timeout, cancel=cancel)
        return text_result(outcome.output, is_error=outcome.is_error)
