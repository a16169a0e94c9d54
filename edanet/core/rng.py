"""Seeded random streams.

Two helpers:
  - RandomStream: per-network source of standard-normal draws backed by its
    own ``torch.Generator``. A fixed seed and call sequence reproduces every
    draw bit-for-bit.
  - seed_everything(seed): best-effort deterministic seeding for Python/random,
    NumPy, and PyTorch global RNGs (caller-side loops only; the engine never
    touches global RNG state).
"""

from __future__ import annotations

import os
import random
from typing import Any, Sequence

import numpy as np
import torch


class RandomStream:
    """Seedable standard-normal source owned by exactly one Network."""

    def __init__(self, seed: int, *, device: Any = "cpu") -> None:
        self.seed = int(seed)
        self.device = torch.device(device)
        self.generator = torch.Generator(device=self.device)
        self.generator.manual_seed(self.seed)

    def normal(self, shape: Sequence[int], *, dtype: torch.dtype = torch.float32) -> torch.Tensor:
        """Draw a tensor of i.i.d. ``Normal(0, 1)`` values."""
        return torch.randn(
            tuple(int(s) for s in shape),
            generator=self.generator,
            dtype=dtype,
            device=self.device,
        )

    def get_state(self) -> torch.Tensor:
        return self.generator.get_state()

    def set_state(self, state: torch.Tensor) -> None:
        self.generator.set_state(state)

    def __repr__(self) -> str:
        return f"RandomStream(seed={self.seed}, device={self.device})"


def seed_everything(seed: int) -> None:
    """Seed Python, NumPy, and PyTorch RNGs deterministically (best-effort)."""

    seed_u32 = int(seed) % (2**32)

    # Best-effort: helps child processes spawned after this call.
    os.environ.setdefault("PYTHONHASHSEED", str(seed_u32))

    random.seed(seed_u32)
    np.random.seed(seed_u32)
    torch.manual_seed(seed_u32)

    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed_u32)


__all__ = [
    "RandomStream",
    "seed_everything",
]
