"""
Module: sentinel.config.__init__
"""

import os

from jsonpycraft import (
    ConfigurationManager,
    JSONDecodeErrorHandler,
    JSONFileErrorHandler,
    JSONMap,
)

DEFAULT_PATH_HOME = os.getenv("SENTINEL_HOME", ".sentinel")
DEFAULT_PATH_LOGS = os.path.join(DEFAULT_PATH_HOME, "sentinel.log")
DEFAULT_PATH_CONF = os.path.join(DEFAULT_PATH_HOME, "settings.json")
DEFAULT_PATH_HIST = os.path.join(DEFAULT_PATH_HOME, "history.log")

DEFAULT_CONF = {
    "logger": {
        "path": DEFAULT_PATH_LOGS,
        "level": "DEBUG",
        "type": "file",
    },
    "history": {
        "path": DEFAULT_PATH_HIST,
        "type": "file",
    },
    "exec": {
        "working_dir": "",  # empty means the process working directory
        "timeout": 60,  # seconds
        "restrict_to_workspace": True,
        "fail_closed": True,  # block path tokens that cannot be resolved
        "allow_patterns": [],  # empty means deny-list-only mode
    },
    "weather": {
        "location": "",  # empty lets wttr.in geolocate the caller
        "units": "metric",
        "timeout": 8.0,
    },
}


def load_or_init_config(path: str, defaults: JSONMap):
    config = ConfigurationManager(path, initial_data=defaults)
    config.mkdir()
    try:
        config.load()
    except (JSONFileErrorHandler, JSONDecodeErrorHandler):
        config.save()
    return config


# NOTE: Do not assign to `config` in any function; it is a top-level singleton.
config = load_or_init_config(DEFAULT_PATH_CONF, DEFAULT_CONF)
