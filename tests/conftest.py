"""
Shared fixtures.

sentinel.config loads its settings at import time, so SENTINEL_HOME must point
somewhere disposable before any sentinel module is imported.
"""

import os
import tempfile

import pytest

os.environ.setdefault("SENTINEL_HOME", tempfile.mkdtemp(prefix="sentinel-tests-"))


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "main.go").write_text("package main\n")
    return root
