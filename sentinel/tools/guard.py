"""
Module: sentinel.tools.guard

Deny/allow rules evaluated over the raw command text before anything is spawned.

Warning: This is pattern matching, not a shell parser. It stops the common
destructive idioms a confused or manipulated model reaches for; it is not a sandbox.
"""

from dataclasses import dataclass
from logging import Logger
from typing import Iterable, List, Optional, Tuple

import regex as re

from sentinel.config import config

REASON_DANGEROUS = "dangerous pattern detected"
REASON_NOT_ALLOWED = "not in allowlist"


class ConfigurationError(ValueError):
    """Raised when the guard or the exec tool is given an unusable setting."""


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Verdict":
        return cls(allowed=True)

    @classmethod
    def block(cls, reason: str) -> "Verdict":
        return cls(allowed=False, reason=reason)


@dataclass(frozen=True)
class GuardRule:
    """A threat category paired with the compiled pattern that detects it."""

    category: str
    pattern: "re.Pattern"

    @classmethod
    def compile(cls, category: str, source: str) -> "GuardRule":
        return cls(category, re.compile(source, re.IGNORECASE))

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


DENY_RULES: Tuple[GuardRule, ...] = (
    # rm -rf, rm -r -f, rm --recursive --force, ...
    GuardRule.compile("recursive delete", r"\brm\s+(-[rf]{1,2}|--recursive|--force)"),
    GuardRule.compile("windows force delete", r"\bdel\s+/[fq]"),
    GuardRule.compile("windows recursive rmdir", r"\brmdir\s+/s"),
    # mkfs, mkfs.ext4, ...
    GuardRule.compile("disk format", r"\b(format|mkfs(\.\w+)?|diskpart)\s"),
    GuardRule.compile("disk imaging", r"\bdd\s+if="),
    # sd*, nvme*n*, vd*
    GuardRule.compile("raw device write", r">\s*/dev/(sd[a-z]|nvme\d+n\d+|vd[a-z])\b"),
    GuardRule.compile("power state", r"\b(shutdown|reboot|poweroff)\b"),
    GuardRule.compile("fork bomb", r":\(\)\s*\{.*\};\s*:"),
    GuardRule.compile(
        "remote script execution",
        r"\b(curl|wget)\b.*\|\s*(sh|bash|zsh|dash|ksh|csh|tcsh|fish)\b",
    ),
    GuardRule.compile("dynamic evaluation", r"\beval\s+"),
    GuardRule.compile("mass delete", r"\bxargs\s+.*\brm\b"),
)


def compile_allow_rules(patterns: Iterable[str]) -> List[GuardRule]:
    """Compile every pattern or raise on the first one that is malformed."""
    rules = []
    for source in patterns:
        if not isinstance(source, str):
            raise ConfigurationError(f"invalid allow pattern {source!r}: not a string")
        try:
            rules.append(GuardRule.compile("allow", source))
        except re.error as e:
            raise ConfigurationError(f"invalid allow pattern {source!r}: {e}") from e
    return rules


class CommandGuard:
    """
    Decides whether a command may run.

    Deny rules always run first and win over allow rules. An empty allow list
    means no allowlist restriction is applied.
    """

    def __init__(
        self,
        deny_rules: Iterable[GuardRule] = DENY_RULES,
        allow_patterns: Optional[Iterable[str]] = None,
    ):
        self.deny_rules: Tuple[GuardRule, ...] = tuple(deny_rules)
        self.allow_rules: List[GuardRule] = []
        if allow_patterns:
            self.set_allow_patterns(allow_patterns)

        self.logger: Logger = config.get_logger("logger", self.__class__.__name__)
        self.logger.debug(f"Initialized CommandGuard with {len(self.deny_rules)} deny rules.")

    @property
    def allow_patterns(self) -> List[str]:
        return [rule.pattern.pattern for rule in self.allow_rules]

    def set_allow_patterns(self, patterns: Iterable[str]) -> None:
        # Swap only after every pattern compiled so a bad list keeps the old state
        self.allow_rules = compile_allow_rules(list(patterns))

    def evaluate(self, command: str) -> Verdict:
        lower = command.strip().lower()

        for rule in self.deny_rules:
            if rule.matches(lower):
                self.logger.warning(f"Blocked command ({rule.category})")
                return Verdict.block(REASON_DANGEROUS)

        if self.allow_rules and not any(rule.matches(lower) for rule in self.allow_rules):
            self.logger.warning("Blocked command (allowlist miss)")
            return Verdict.block(REASON_NOT_ALLOWED)

        return Verdict.allow()
