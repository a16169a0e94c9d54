"""edanet settings.

Layered configuration, later layers win:
  1. built-in defaults (below)
  2. ``edanet_config.yaml`` next to this module, or an explicit ``path``
  3. ``EDA_*`` environment variables

Settings are parsed, not validated: EDA invariants (window bounds, bank
count) are enforced by :class:`edanet.core.network.Network`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

import torch
import yaml


DTMAPS: Mapping[str, torch.dtype] = MappingProxyType(
    {
        "fp64": torch.float64,
        "fp32": torch.float32,
    }
)

DEVSET = frozenset({"cuda", "cpu"})

CONFIG_PATH = Path(__file__).resolve().parent / "edanet_config.yaml"

DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        "seed": 2,
        "window": 8,
        "population": 256,
        "banks": 1,
        "precision": "fp32",
        "device": "cpu",
        "log_every": 0,
        "log_path": "",
        "snapshot_path": "",
    }
)


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def _env_str(name: str, default: str = "") -> str:
    valsix = os.environ.get(name, default)
    return str(valsix).strip()


def _def_log() -> str:
    return os.path.join(os.getcwd(), "logs", "current", "edanet.log")


def _load_yaml(path: Optional[str]) -> dict[str, Any]:
    """Flatten the ``network`` and ``runtime`` sections of a YAML config."""

    if path is None:
        cfgpth = CONFIG_PATH
        if not cfgpth.exists():
            return {}
    else:
        cfgpth = Path(path)
        if not cfgpth.exists():
            raise FileNotFoundError(str(cfgpth))

    with open(cfgpth, "r", encoding="utf-8") as filobj:
        rawcfg = yaml.safe_load(filobj) or {}

    flat: dict[str, Any] = {}
    for section in ("network", "runtime"):
        secval = rawcfg.get(section) or {}
        for keystr, valobj in secval.items():
            if keystr in DEFAULTS and valobj is not None:
                flat[keystr] = valobj
    return flat


def _prec_dt(name: str) -> Tuple[str, torch.dtype]:
    precvl = str(name).strip().lower()
    if precvl not in DTMAPS:
        precvl = "fp32"
    return precvl, DTMAPS[precvl]


def _pick_dev(name: str) -> str:
    devval = str(name).strip().lower()
    if devval not in DEVSET:
        devval = "cpu"
    if devval == "cuda" and not torch.cuda.is_available():
        return "cpu"
    return devval


@dataclass(frozen=True)
class Settings:
    seed: int
    window: int
    population: int
    banks: int

    precision: str
    dtype: torch.dtype
    device: str

    log_every: int
    log_path: str
    snapshot_path: str


def load_settings(path: Optional[str] = None) -> Settings:
    base = dict(DEFAULTS)
    base.update(_load_yaml(path))

    # ---- Network ----
    seed = _env_int("EDA_SEED", int(base["seed"]))
    window = _env_int("EDA_WINDOW", int(base["window"]))
    population = _env_int("EDA_POPULATION", int(base["population"]))
    banks = _env_int("EDA_BANKS", int(base["banks"]))

    # ---- Numerics ----
    precision, dtype = _prec_dt(_env_str("EDA_PRECISION", str(base["precision"])))
    device = _pick_dev(_env_str("EDA_DEVICE", str(base["device"])))

    # ---- Runtime ----
    log_every = _env_int("EDA_LOG_EVERY", int(base["log_every"]))
    # NOTE: whitespace becomes empty via _env_str(...).strip(); empty must fall back.
    log_path = _env_str("EDA_LOG_PATH", str(base["log_path"])) or _def_log()
    snapshot_path = _env_str("EDA_SNAPSHOT", str(base["snapshot_path"]))

    locmap = locals()
    kwdsix = {namkey: locmap[namkey] for namkey in Settings.__dataclass_fields__}
    return Settings(**kwdsix)


__all__ = [
    "Settings",
    "load_settings",
]
