"""Ensemble evaluation: draw a population and project it against one input.

Layout:
  weights  [P, O, I]  one quantized weight bank per population member
  outputs  [P, O]     ``outputs[p, u] = dot(weights[p, u], input)``

``outputs`` is the population output matrix handed to the fitness oracle:
one row per member, one column per output unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

import torch

from .errors import ConfigurationError
from .field import GaussianFieldSet
from .sampler import NormalSource, sample_many


@dataclass
class Sample:
    """One population member.

    ``fitness`` is ``None`` until the oracle has scored the population.
    """

    weights: torch.Tensor  # [O, I]
    output: torch.Tensor  # [O]
    fitness: Optional[float] = None


@dataclass
class Population:
    """P samples drawn from one field set against one input vector."""

    weights: torch.Tensor  # [P, O, I]
    outputs: torch.Tensor  # [P, O]
    fitness: Optional[torch.Tensor] = None  # [P]

    def __len__(self) -> int:
        return int(self.weights.shape[0])

    def __getitem__(self, index: int) -> Sample:
        fitval = None if self.fitness is None else float(self.fitness[index])
        return Sample(weights=self.weights[index], output=self.outputs[index], fitness=fitval)

    def __iter__(self) -> Iterator[Sample]:
        for idxval in range(len(self)):
            yield self[idxval]


def as_input(values: Any, inputs: int, *, dtype: torch.dtype, device: Any = "cpu") -> torch.Tensor:
    """Coerce ``values`` to a 1-D tensor of length ``inputs`` or raise ConfigurationError."""
    vec = torch.as_tensor(values, dtype=dtype, device=device)
    if vec.dim() != 1:
        raise ConfigurationError(f"input must be a 1-D vector, got shape {tuple(vec.shape)}")
    if int(vec.shape[0]) != int(inputs):
        raise ConfigurationError(f"input length {int(vec.shape[0])} does not match configured inputs={int(inputs)}")
    return vec


def evaluate(
    field: GaussianFieldSet,
    vector: torch.Tensor,
    population: int,
    rng: NormalSource,
) -> Population:
    """Draw ``population`` weight banks and project each against ``vector``."""
    vec = as_input(vector, field.inputs, dtype=field.mean.dtype, device=field.mean.device)
    weights = sample_many(field, rng, population)
    outputs = torch.einsum("poi,i->po", weights, vec)
    return Population(weights=weights, outputs=outputs)


def evaluate_banks(
    fields: Mapping[str, GaussianFieldSet],
    vector: torch.Tensor,
    population: int,
    rng: NormalSource,
) -> dict[str, Population]:
    """Evaluate several banks against the same input, in mapping order.

    Banks draw from the same stream one after another, so members at the same
    index share no random draw.
    """
    return {name: evaluate(field, vector, population, rng) for name, field in fields.items()}


__all__ = [
    "Sample",
    "Population",
    "as_input",
    "evaluate",
    "evaluate_banks",
]
