"""Belief snapshot save/load.

Payload (torch pickle, written atomically via temp file + ``os.replace``):
  {
    "format": "edanet.belief", "version": 1,
    "inputs", "outputs", "population", "banks", "window", "fires",
    "fields": {bank: {"mean": [O, I], "stddev": [O, I]}},
    "rng_state": ByteTensor,
  }

The layout is an implementation detail; only this module reads or writes it.
"""

from __future__ import annotations

import os
import pickle
import tempfile
from typing import Any, Mapping

import torch

from .errors import ConfigurationError
from .log import log


FORMAT = "edanet.belief"
VERSION = 1


def _atomic_torch_save(obj: Any, path: str) -> None:
    """Atomically torch.save(obj) -> path (temp file + os.replace)."""
    dirpth = os.path.dirname(path) or "."
    os.makedirs(dirpth, exist_ok=True)

    fdpair = tempfile.mkstemp(prefix=f".tmp.{os.path.basename(path)}.", dir=dirpth)
    os.close(fdpair[0])
    tmppth = fdpair[1]

    try:
        with open(tmppth, "wb") as filobj:
            torch.save(obj, filobj)
            filobj.flush()
            try:
                os.fsync(filobj.fileno())
            except OSError:
                pass
        os.replace(tmppth, path)
        tmppth = ""
    finally:
        if tmppth:
            try:
                os.remove(tmppth)
            except OSError:
                pass


def _torch_load_cpu(path: str) -> Any:
    """Load a snapshot payload onto CPU (tensors, dicts and scalars only)."""
    try:
        return torch.load(path, map_location="cpu", weights_only=True)
    except (pickle.UnpicklingError, RuntimeError, EOFError, ValueError) as exc:
        raise ConfigurationError(f"unreadable snapshot {path}: {exc}") from exc


def save_snapshot(net: Any, path: str) -> None:
    """Write ``net``'s belief, window, fire count and random stream to ``path``."""
    payobj = {"format": FORMAT, "version": VERSION}
    payobj.update(net.state_dict())
    _atomic_torch_save(payobj, path)
    log(f"[snapshot] saved fires={payobj['fires']} banks={payobj['banks']} -> {path}")


def read_snapshot(path: str) -> Mapping[str, Any]:
    """Load and sanity-check a snapshot payload without applying it."""
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    payobj = _torch_load_cpu(path)
    if not isinstance(payobj, Mapping) or payobj.get("format") != FORMAT:
        raise ConfigurationError(f"not an edanet belief snapshot: {path}")
    if int(payobj.get("version", -1)) != VERSION:
        raise ConfigurationError(f"unsupported snapshot version {payobj.get('version')!r} in {path}")
    return payobj


def load_snapshot(net: Any, path: str) -> None:
    """Restore ``net`` from ``path``; dimension or bank mismatches raise ConfigurationError."""
    payobj = read_snapshot(path)
    net.load_state_dict(payobj)
    log(f"[snapshot] loaded fires={net.fires} banks={net.banks} <- {path}")


__all__ = [
    "FORMAT",
    "VERSION",
    "save_snapshot",
    "read_snapshot",
    "load_snapshot",
]
