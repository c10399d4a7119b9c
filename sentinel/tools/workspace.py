"""
Module: sentinel.tools.workspace

Keeps the paths a command mentions inside the working directory.

The checks run on the command string before anything is spawned. Traversal
sequences are rejected outright, in literal or percent-encoded form, along with
null bytes. Absolute paths, including home-relative ones, are then resolved
against the working directory.
"""

import os
from logging import Logger
from typing import List, Optional

import regex as re

from sentinel.config import config
from sentinel.tools.guard import Verdict

REASON_TRAVERSAL = "path traversal detected"
REASON_ENCODED_TRAVERSAL = "URL-encoded path traversal detected"
REASON_NULL_BYTE = "null byte injection detected"
REASON_OUTSIDE = "path outside working dir"
REASON_UNRESOLVED = "unresolvable path"

TRAVERSAL = ("../", "..\\")
ENCODED_TRAVERSAL = ("%2e%2e%2f", "%2e%2e/", "..%2f", "%2e%2e%5c")
NULL_BYTES = ("\x00", "%00")

# Words end at whitespace, quotes, backticks and shell operators. Inside a word a
# path can also start after `=`, `,` or a brace: --directory=/var, {/etc/passwd,x}
WORD = re.compile(r"""[^\s"'`<>|;&()]+""")
PIECE = re.compile(r"[^=,{}]+")
DRIVE = re.compile(r"[A-Za-z]:\\")
# -I/usr/include, -o/tmp/out
SHORT_OPTION = re.compile(r"-{1,2}[A-Za-z]?")


def extract_paths(command: str) -> List[str]:
    """
    Absolute path tokens of a command, with `~` and `$HOME` expanded.

    A slash inside a relative word such as src/main.go does not start a token.
    """
    paths = []
    for word in WORD.findall(command):
        # the shell drops the backslash in \/etc/passwd
        word = word.replace("\\/", "/")
        for piece in PIECE.findall(word):
            if piece.startswith("-"):
                piece = piece[SHORT_OPTION.match(piece).end() :]
            if piece.startswith("$HOME") and piece[5:6] in ("", "/"):
                piece = "~" + piece[5:]
            if piece.startswith("~"):
                paths.append(os.path.expanduser(piece))
            elif piece.startswith("/") or DRIVE.match(piece):
                paths.append(piece)
    return paths


class WorkspaceChecker:
    """
    Confinement check against a working directory.

    :param fail_closed: Block when a path token cannot be resolved. When False,
        such tokens are skipped, which lets a malformed path through.
    """

    def __init__(self, fail_closed: bool = True):
        self.fail_closed = fail_closed

        self.logger: Logger = config.get_logger("logger", self.__class__.__name__)

    def _relative(self, path: str, root: str) -> str:
        if path.startswith("~"):
            raise ValueError(f"unknown home directory in {path!r}")
        # relpath raises ValueError for paths on another drive
        return os.path.relpath(os.path.abspath(path), root)

    def _block(self, reason: str, root: str) -> Verdict:
        self.logger.warning(f"Blocked command ({reason}) in {root}")
        return Verdict.block(reason)

    def check_path(self, path: str, root: str) -> Optional[str]:
        """Returns the block reason for a single path token, or None when it is inside root."""
        try:
            rel = self._relative(path, root)
        except (ValueError, OSError) as e:
            if self.fail_closed:
                return REASON_UNRESOLVED
            self.logger.debug(f"Skipping unresolvable path {path!r}: {e}")
            return None
        if rel == os.pardir or rel.startswith(os.pardir + os.sep):
            return REASON_OUTSIDE
        return None

    def check(self, command: str, working_dir: str) -> Verdict:
        root = os.path.abspath(working_dir)

        if any(seq in command for seq in TRAVERSAL):
            return self._block(REASON_TRAVERSAL, root)

        lower = command.lower()
        if any(seq in lower for seq in ENCODED_TRAVERSAL):
            return self._block(REASON_ENCODED_TRAVERSAL, root)

        if any(seq in command for seq in NULL_BYTES):
            return self._block(REASON_NULL_BYTE, root)

        for path in extract_paths(command):
            reason = self.check_path(path, root)
            if reason:
                return self._block(reason, root)

        return Verdict.allow()
