"""Elitism and the estimation-of-distribution update.

One cycle:
  1. rank members by fitness, ascending, stable (ties keep draw order)
  2. elite = first ``window`` ranked members
  3. mean[u, d]   = average of elite weights at (u, d)
  4. stddev[u, d] = sqrt(average of (mean[u, d] - w[u, d])^2 over the elite)

The estimator is the biased (population) variance over the elite only;
non-elite members are forgotten entirely each cycle.

Convergence hazard: with ``window == 1`` (or any elite whose members agree at
a coordinate) the stddev there becomes exactly 0 and every later draw at that
coordinate repeats the frozen mean's sign. This is an absorbing state, not an
error; nothing here resets it.
"""

from __future__ import annotations

from typing import Tuple

import torch

from .errors import ConfigurationError
from .field import GaussianFieldSet


def check_window(window: int, population: int) -> int:
    """Return ``window`` as int, or raise ConfigurationError unless 1 <= window <= population."""
    population = int(population)
    if population <= 0:
        raise ConfigurationError(f"population size must be positive, got {population}")
    try:
        window = int(window)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"window must be an integer, got {window!r}") from exc
    if window < 1 or window > population:
        raise ConfigurationError(f"window must satisfy 1 <= window <= {population}, got {window}")
    return window


def rank(fitness: torch.Tensor) -> torch.Tensor:
    """Member indices ordered by fitness ascending; ties keep original order."""
    return torch.sort(fitness, stable=True).indices


def elite_estimate(weights: torch.Tensor, order: torch.Tensor, window: int) -> Tuple[torch.Tensor, torch.Tensor]:
    """Fit (mean, stddev) of shape ``[O, I]`` to the ``window`` best members of ``weights [P, O, I]``."""
    window = check_window(window, int(weights.shape[0]))
    elite = weights[order[:window].to(weights.device)]
    mean = elite.mean(dim=0)
    stddev = (mean.unsqueeze(0) - elite).pow(2).mean(dim=0).sqrt()
    return mean, stddev


def elite_update(field: GaussianFieldSet, weights: torch.Tensor, order: torch.Tensor, window: int) -> None:
    """Re-estimate ``field`` in place from the elite of ``weights``."""
    mean, stddev = elite_estimate(weights, order, window)
    field.replace(mean, stddev)


__all__ = [
    "check_window",
    "rank",
    "elite_estimate",
    "elite_update",
]
