"""Shared bootstrap/helpers for edanet tests.

The repo root holds both the ``edanet`` package and the caller-side ``tools``
modules; neither needs to be installed for local runs.

This module is named ``conftest.py`` for compatibility with pytest auto-loading,
but it does **not** depend on pytest.
"""

from __future__ import annotations

import os
import sys
import unittest
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional


REPROO = Path(__file__).resolve().parents[1]


def _addpth(pthstr: str) -> None:
    """Prepend *pthstr* to sys.path (if not already present)."""

    if pthstr and pthstr not in sys.path:
        sys.path.insert(0, pthstr)


def bootstrap_import_path() -> None:
    """Ensure ``edanet`` and ``tools`` are importable for tests."""

    _addpth(str(REPROO))


@contextmanager
def temporary_env(**ovrmap: Optional[str]) -> Iterator[None]:
    """Temporarily set/unset environment variables.

    Pass KEY="value" to set, or KEY=None to ensure the variable is unset.
    """

    misobj = object()
    oldmap: dict[str, object] = {keystr: os.environ.get(keystr, misobj) for keystr in ovrmap}

    try:
        for keystr, valstr in ovrmap.items():
            if valstr is None:
                os.environ.pop(keystr, None)
            else:
                os.environ[keystr] = str(valstr)
        yield
    finally:
        for keystr, oldval in oldmap.items():
            if oldval is misobj:
                os.environ.pop(keystr, None)
            else:
                os.environ[keystr] = str(oldval)


@contextmanager
def quiet_log() -> Iterator[None]:
    """Disable the edanet log file sink for the duration of a test."""

    from edanet.core import log as logmod

    oldpth = logmod.LOG_PATH
    logmod.LOG_PATH = ""
    try:
        yield
    finally:
        logmod.LOG_PATH = oldpth


class QuietTestCase(unittest.TestCase):
    """TestCase whose tests run with the log file sink disabled."""

    def setUp(self) -> None:
        super().setUp()
        ctxobj = quiet_log()
        ctxobj.__enter__()
        self.addCleanup(ctxobj.__exit__, None, None, None)


# Run at import time so both unittest (explicit import) and pytest (auto-load)
# get deterministic import behavior.
bootstrap_import_path()
