"""Sign-quantized reparameterized sampling.

For every coordinate (u, d): ``x = mean + z * stddev`` with ``z ~ N(0, 1)``,
then ``w = +1 if x > 0 else -1``. Only the sign survives, so the belief moves
the *probability* of +1, not the weight magnitude. ``x == 0`` maps to -1.
"""

from __future__ import annotations

from typing import Protocol, Sequence

import torch

from .errors import ConfigurationError
from .field import GaussianFieldSet


class NormalSource(Protocol):
    def normal(self, shape: Sequence[int], *, dtype: torch.dtype = ...) -> torch.Tensor: ...


def quantize(values: torch.Tensor) -> torch.Tensor:
    """Map strictly positive values to +1 and everything else (0 included) to -1."""
    pos = torch.ones_like(values)
    return torch.where(values > 0, pos, -pos)


def sample(field: GaussianFieldSet, rng: NormalSource) -> torch.Tensor:
    """Draw one weight bank of shape ``(O, I)`` with entries in {+1, -1}."""
    zval = rng.normal(field.shape, dtype=field.mean.dtype)
    return quantize(field.mean + zval * field.stddev)


def sample_many(field: GaussianFieldSet, rng: NormalSource, count: int) -> torch.Tensor:
    """Draw ``count`` weight banks at once, shape ``(count, O, I)``."""
    count = int(count)
    if count <= 0:
        raise ConfigurationError(f"population size must be positive, got {count}")
    zval = rng.normal((count,) + field.shape, dtype=field.mean.dtype)
    return quantize(field.mean.unsqueeze(0) + zval * field.stddev.unsqueeze(0))


__all__ = [
    "NormalSource",
    "quantize",
    "sample",
    "sample_many",
]
