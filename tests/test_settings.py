"""Behavior locks for :mod:`edanet.settings`.

Pins:
- built-in defaults match the shipped YAML (seed 2, window 8, population 256)
- YAML layer overrides defaults; env overrides YAML
- unknown precision falls back to fp32; unknown device falls back to cpu
- an explicit config path that does not exist is an error
- empty EDA_LOG_PATH falls back to <cwd>/logs/current/edanet.log
"""

from __future__ import annotations

import os
import tempfile
import unittest

import conftest  # noqa: F401  (import side-effect: sys.path bootstrap)

import torch

from edanet.settings import DEFAULTS, load_settings


ENVKEY = (
    "EDA_SEED",
    "EDA_WINDOW",
    "EDA_POPULATION",
    "EDA_BANKS",
    "EDA_PRECISION",
    "EDA_DEVICE",
    "EDA_LOG_EVERY",
    "EDA_LOG_PATH",
    "EDA_SNAPSHOT",
)


def _clean_env(**ovrmap):
    envmap = {keystr: None for keystr in ENVKEY}
    envmap.update(ovrmap)
    return conftest.temporary_env(**envmap)


class TestLoadSettings(unittest.TestCase):

    def test_defaults(self) -> None:
        with _clean_env():
            settings = load_settings()
        self.assertEqual(settings.seed, DEFAULTS["seed"])
        self.assertEqual(settings.window, 8)
        self.assertEqual(settings.population, 256)
        self.assertEqual(settings.banks, 1)
        self.assertEqual(settings.precision, "fp32")
        self.assertIs(settings.dtype, torch.float32)
        self.assertEqual(settings.device, "cpu")
        self.assertEqual(settings.log_every, 0)
        self.assertEqual(settings.snapshot_path, "")
        self.assertEqual(
            settings.log_path, os.path.join(os.getcwd(), "logs", "current", "edanet.log")
        )

    def test_env_overrides(self) -> None:
        with _clean_env(
            EDA_SEED="11",
            EDA_WINDOW="4",
            EDA_POPULATION="32",
            EDA_BANKS="3",
            EDA_PRECISION=" FP64 ",
            EDA_LOG_EVERY="5",
            EDA_LOG_PATH="/tmp/eda.log",
            EDA_SNAPSHOT="belief.pt",
        ):
            settings = load_settings()
        self.assertEqual((settings.seed, settings.window, settings.population, settings.banks), (11, 4, 32, 3))
        self.assertEqual(settings.precision, "fp64")
        self.assertIs(settings.dtype, torch.float64)
        self.assertEqual(settings.log_every, 5)
        self.assertEqual(settings.log_path, "/tmp/eda.log")
        self.assertEqual(settings.snapshot_path, "belief.pt")

    def test_fallbacks(self) -> None:
        with _clean_env(EDA_PRECISION="bf16", EDA_DEVICE="tpu", EDA_LOG_PATH="   "):
            settings = load_settings()
        self.assertEqual(settings.precision, "fp32")
        self.assertEqual(settings.device, "cpu")
        self.assertTrue(settings.log_path.endswith(os.path.join("logs", "current", "edanet.log")))

    def test_explicit_yaml_layer(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            cfgpth = os.path.join(tmpdir, "cfg.yaml")
            with open(cfgpth, "w", encoding="utf-8") as filobj:
                filobj.write(
                    "network:\n"
                    "  seed: 7\n"
                    "  window: 3\n"
                    "  unknown_key: 1\n"
                    "runtime:\n"
                    "  log_every: 2\n"
                )
            with _clean_env():
                settings = load_settings(cfgpth)
            with _clean_env(EDA_WINDOW="5"):
                envset = load_settings(cfgpth)

        self.assertEqual((settings.seed, settings.window, settings.log_every), (7, 3, 2))
        self.assertEqual(settings.population, 256)
        self.assertEqual(envset.window, 5)
        self.assertEqual(envset.seed, 7)

    def test_missing_explicit_path(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_settings("/nonexistent/edanet.yaml")

    def test_settings_are_frozen(self) -> None:
        with _clean_env():
            settings = load_settings()
        with self.assertRaises(Exception):
            settings.seed = 3  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
