"""Feature providers for edanet driving loops.

Caller-side collaborators; the engine never imports this module.

Scope (intentionally narrow):
- Corpus reading (raw files, or ``.bz2`` text reduced to code points < 256)
- Byte co-occurrence embedding table [256, 256], rows L2-normalized
- Embedding learning over a source tree, save/load
- Little-endian position bits and the concatenated per-byte feature vector
"""

from __future__ import annotations

import bz2
import os
import pickle
import tempfile
from pathlib import Path
from typing import Iterable, Tuple

import numpy as np
import torch

from edanet.core.errors import ConfigurationError
from edanet.core.log import log


BYTE_VOCAB = 256
POSITION_BITS = 64


def read_corpus(path: str | os.PathLike[str]) -> Tuple[bytes, int]:
    """Return ``(data, dropped)``.

    ``.bz2`` input is decompressed and decoded as UTF-8; each code point below
    256 becomes one byte and the rest are dropped (and counted). Any other
    file is returned verbatim with ``dropped == 0``.
    """

    pthstr = os.fspath(path)
    if not pthstr.endswith(".bz2"):
        with open(pthstr, "rb") as filobj:
            return filobj.read(), 0

    with bz2.open(pthstr, "rb") as filobj:
        raw = filobj.read()
    log(f"[data] {pthstr}: {len(raw)} decompressed bytes")

    text = raw.decode("utf-8", errors="replace")
    keep = bytearray()
    dropped = 0
    for chrval in text:
        cdpnt = ord(chrval)
        if cdpnt < BYTE_VOCAB:
            keep.append(cdpnt)
        else:
            dropped += 1
    log(f"[data] unicode dropped={dropped}")
    return bytes(keep), dropped


def _cooccurrence(data: bytes) -> np.ndarray:
    """Neighbor counts: row ``data[i]`` gets +1 at ``data[i-1]`` and at ``data[i+1]``."""

    counts = np.zeros((BYTE_VOCAB, BYTE_VOCAB), dtype=np.float64)
    arr = np.frombuffer(bytes(data), dtype=np.uint8)
    if arr.size < 2:
        return counts
    # (cur, prev) for i > 0 and (cur, next) for i < n-1 are the same pairs flipped.
    np.add.at(counts, (arr[1:], arr[:-1]), 1.0)
    np.add.at(counts, (arr[:-1], arr[1:]), 1.0)
    return counts


def _normalize_rows(counts: np.ndarray) -> torch.Tensor:
    norms = np.sqrt((counts * counts).sum(axis=1, keepdims=True))
    safe = np.where(norms == 0.0, 1.0, norms)
    return torch.from_numpy((counts / safe).astype(np.float32))


def build_embedding(data: bytes) -> torch.Tensor:
    """Byte co-occurrence table with L2-normalized rows; unseen bytes stay zero."""

    return _normalize_rows(_cooccurrence(data))


def iter_source_files(root: str | os.PathLike[str], suffix: str = ".go") -> Iterable[Path]:
    """All files under ``root`` (recursive, sorted) whose name ends with ``suffix``."""

    for pthobj in sorted(Path(root).rglob("*")):
        if pthobj.is_file() and pthobj.name.endswith(suffix):
            yield pthobj


def learn_embedding(root: str | os.PathLike[str], suffix: str = ".go") -> torch.Tensor:
    """Accumulate co-occurrences over a source tree, then normalize once."""

    counts = np.zeros((BYTE_VOCAB, BYTE_VOCAB), dtype=np.float64)
    filcnt = 0
    for pthobj in iter_source_files(root, suffix):
        counts += _cooccurrence(pthobj.read_bytes())
        filcnt += 1
    log(f"[data] learned embedding from {filcnt} file(s) under {os.fspath(root)}")
    return _normalize_rows(counts)


def save_embedding(table: torch.Tensor, path: str | os.PathLike[str]) -> None:
    """Atomically write the embedding table to ``path``."""

    dstpth = Path(path)
    dstpth.parent.mkdir(parents=True, exist_ok=True)

    fd, tmppth = tempfile.mkstemp(prefix=dstpth.name + ".", suffix=".tmp", dir=str(dstpth.parent))
    os.close(fd)

    try:
        torch.save({"embedding": table.detach().cpu()}, tmppth)
        os.replace(tmppth, str(dstpth))
        tmppth = ""
    finally:
        if tmppth:
            try:
                os.remove(tmppth)
            except FileNotFoundError:
                pass
    log(f"[data] embedding saved -> {dstpth}")


def load_embedding(path: str | os.PathLike[str]) -> torch.Tensor:
    pthstr = os.fspath(path)
    try:
        payobj = torch.load(pthstr, map_location="cpu", weights_only=True)
    except (pickle.UnpicklingError, RuntimeError, EOFError, ValueError) as exc:
        raise ConfigurationError(f"unreadable embedding {pthstr}: {exc}") from exc
    table = payobj.get("embedding") if isinstance(payobj, dict) else payobj
    if not isinstance(table, torch.Tensor) or tuple(table.shape) != (BYTE_VOCAB, BYTE_VOCAB):
        shape = tuple(table.shape) if isinstance(table, torch.Tensor) else type(table).__name__
        raise ConfigurationError(f"embedding must be [{BYTE_VOCAB}, {BYTE_VOCAB}], got {shape} in {pthstr}")
    log(f"[data] embedding loaded <- {pthstr}")
    return table


def position_bits(index: int, width: int = POSITION_BITS) -> torch.Tensor:
    """Little-endian bits of ``index`` as 1.0 / 0.0, length ``width``."""

    idxval = int(index)
    bits = torch.zeros(int(width), dtype=torch.float32)
    for bitpos in range(int(width)):
        if idxval & 1:
            bits[bitpos] = 1.0
        idxval >>= 1
    return bits


def byte_features(table: torch.Tensor, data: bytes, position: int, *, with_position: bool = False) -> torch.Tensor:
    """Embedding row of ``data[position]``, optionally followed by its position bits."""

    row = table[data[position]].to(dtype=torch.float32)
    if not with_position:
        return row.clone()
    return torch.cat([row, position_bits(position)])


__all__ = [
    "BYTE_VOCAB",
    "POSITION_BITS",
    "read_corpus",
    "build_embedding",
    "iter_source_files",
    "learn_embedding",
    "save_embedding",
    "load_embedding",
    "position_bits",
    "byte_features",
]
