"""
Module: sentinel.__main__

Run commands through the guarded exec tool by hand.

    python -m sentinel run -- ls -l src/
    python -m sentinel repl --working-dir ~/project
"""

import argparse
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory

from sentinel.config import config
from sentinel.tools.base import ToolResult
from sentinel.tools.guard import ConfigurationError
from sentinel.tools.shell import ExecTool

ESCAPE = "\x1b"
RESET = ESCAPE + "[0m"
BOLD = ESCAPE + "[1m"
RED = ESCAPE + "[31m"


def build_tool(args: argparse.Namespace) -> ExecTool:
    tool = ExecTool.from_config()
    if args.working_dir:
        tool.working_dir = args.working_dir
    if args.timeout is not None:
        tool.set_timeout(args.timeout)
    if args.no_restrict:
        tool.set_restrict_to_workspace(False)
    if args.allow:
        tool.set_allow_patterns(args.allow)
    return tool


def report(result: ToolResult) -> None:
    if result.is_error:
        print(f"{RED}{result.for_user}{RESET}")
    else:
        print(result.for_user)
    sys.stdout.flush()


def cmd_run(tool: ExecTool, args: argparse.Namespace) -> int:
    command = args.command
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        print("run: provide a command after --")
        return 2
    result = tool.execute({"command": " ".join(command)})
    report(result)
    return 1 if result.is_error else 0


def cmd_repl(tool: ExecTool, args: argparse.Namespace) -> int:
    session = PromptSession(history=FileHistory(config.get_value("history.path")))
    print(f"{BOLD}sentinel{RESET} (working dir: {tool.resolve_working_dir({})})")
    print("Type 'exit' or 'quit' to leave.\n")

    while True:
        try:
            line = session.prompt("$ ", auto_suggest=AutoSuggestFromHistory())
        except EOFError:
            print()
            return 0
        except KeyboardInterrupt:
            continue  # drop the current line

        line = line.strip()
        if not line:
            continue
        if line.lower() in ("exit", "quit"):
            return 0

        report(tool.execute({"command": line}))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sentinel",
        description="Run shell commands through the exec tool's safety guard.",
    )
    parser.add_argument(
        "--working-dir",
        type=str,
        default=None,
        help="Working directory (default: exec.working_dir or the current directory).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before a command is killed (default: exec.timeout).",
    )
    parser.add_argument(
        "--no-restrict",
        action="store_true",
        help="Allow paths outside the working directory.",
    )
    parser.add_argument(
        "--allow",
        action="append",
        default=None,
        help="Allow pattern (regex); repeat to allow several. Overrides exec.allow_patterns.",
    )

    subparsers = parser.add_subparsers(dest="subcmd", required=True)

    run = subparsers.add_parser("run", help="Run a single command")
    run.add_argument("command", nargs=argparse.REMAINDER, help="Command; use: run -- <cmd...>")
    run.set_defaults(func=cmd_run)

    repl = subparsers.add_parser("repl", help="Interactive prompt")
    repl.set_defaults(func=cmd_repl)

    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        tool = build_tool(args)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 2
    return int(args.func(tool, args))


if __name__ == "__main__":
    raise SystemExit(main())
