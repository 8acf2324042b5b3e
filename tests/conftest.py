"""Pytest configuration shared by every suite.

What:
  Establish project import paths and apply a canned runtime configuration to
  every test.

Why:
  Tests must import the in-repo ``mailbatch`` package rather than an installed
  wheel, and the runtime configuration is cached globally; without explicit
  resets one test's configuration could leak into the next.

How:
  Prepend ``mailbatch/src`` to ``sys.path`` when present and define an autouse
  fixture pointing ``MAILBATCH_CONFIG_PATH`` at ``tests/data/config.yaml``
  while clearing the cache before and after each test.

Interfaces:
  :func:`runtime_config` (pytest fixture), ``CONFIG_PATH``.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "mailbatch" / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import pytest

from mailbatch.config.loader import reset_runtime_config

CONFIG_PATH = Path(__file__).resolve().parent / "data" / "config.yaml"


@pytest.fixture(autouse=True)
def runtime_config(monkeypatch: pytest.MonkeyPatch):
    """Apply the canned configuration file for every test."""

    monkeypatch.setenv("MAILBATCH_CONFIG_PATH", str(CONFIG_PATH))
    monkeypatch.delenv("MAILBATCH_ACCESS_TOKEN", raising=False)
    reset_runtime_config()
    try:
        yield
    finally:
        reset_runtime_config()
