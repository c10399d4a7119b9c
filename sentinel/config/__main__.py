"""
Module: sentinel.config.__main__

Inspect and edit the settings used by the guarded shell tools.

Values written with `set` are checked against what the tools accept, so a typo
in an allow pattern or a timeout is reported here rather than when the exec
tool is next built.
"""

import argparse
import json
from dataclasses import asdict

from sentinel.backend.wttr import UNITS
from sentinel.config import DEFAULT_CONF, config
from sentinel.tools.guard import ConfigurationError, compile_allow_rules
from sentinel.tools.shell import ExecConfig, ExecTool


def walk(data: dict, prefix: str = "") -> list:
    keys = []
    for k, v in data.items():
        full = f"{prefix}.{k}" if prefix else k
        if isinstance(v, dict):
            keys.extend(walk(v, full))
        else:
            keys.append(full)
    return keys


def parse_value(raw: str):
    try:
        # Try to parse as JSON for richer types, e.g. lists of allow patterns
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _positive_number(key, value):
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"invalid {key} {value!r}: must be a positive number")


def _flag(key, value):
    if not isinstance(value, bool):
        raise ConfigurationError(f"invalid {key} {value!r}: must be true or false")


def _text(key, value):
    if not isinstance(value, str):
        raise ConfigurationError(f"invalid {key} {value!r}: must be a string")


def _patterns(key, value):
    if not isinstance(value, list):
        raise ConfigurationError(f"invalid {key} {value!r}: must be a JSON list")
    compile_allow_rules(value)


def _units(key, value):
    if value not in UNITS:
        raise ConfigurationError(f"invalid {key} {value!r}: expected one of {', '.join(UNITS)}")


VALIDATORS = {
    "exec.working_dir": _text,
    "exec.timeout": _positive_number,
    "exec.restrict_to_workspace": _flag,
    "exec.fail_closed": _flag,
    "exec.allow_patterns": _patterns,
    "weather.location": _text,
    "weather.units": _units,
    "weather.timeout": _positive_number,
}


def validate(key: str, value) -> None:
    """Raises ConfigurationError for an unknown key or a value the tools would reject."""
    if key not in walk(DEFAULT_CONF):
        raise ConfigurationError(f"unknown config key {key!r}")
    check = VALIDATORS.get(key)
    if check:
        check(key, value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sentinel Configuration Utility")
    subparsers = parser.add_subparsers(dest="command")

    view = subparsers.add_parser(
        "view", help="View a config value or the entire config"
    )
    view.add_argument("key", nargs="?", default=None, help="Config key (dot notation)")

    set_ = subparsers.add_parser("set", help="Set a config value")
    set_.add_argument("key", help="Config key (dot notation)")
    set_.add_argument("value", help="New value (JSON or string)")

    subparsers.add_parser("list", help="List all config keys")
    subparsers.add_parser("check", help="Build the exec tool from the saved settings")
    subparsers.add_parser("reset", help="Reset config to defaults")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "view":
            if args.key:
                print(json.dumps(config.get_value(args.key), indent=2))
            else:
                print(json.dumps(config.data, indent=2))
        elif args.command == "set":
            value = parse_value(args.value)
            validate(args.key, value)
            config.set_value(args.key, value)
            config.save()
            print(f"Set {args.key} to {value}")
        elif args.command == "list":
            for key in walk(config.data):
                print(key)
        elif args.command == "check":
            settings = ExecConfig.from_config()
            ExecTool.from_config(settings)
            print(json.dumps(asdict(settings), indent=2))
        elif args.command == "reset":
            # Overwrite the config file directly with defaults
            config.reset(initial_data=DEFAULT_CONF)
            print("Config reset to defaults. Restart any running tools to reload settings.")
        else:
            parser.print_help()
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
