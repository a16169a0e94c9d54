"""Gaussian belief over one neuron bank's weights.

A GaussianFieldSet maps (output unit u, input dimension d) to a
(mean, stddev) pair. Shape ``(O, I)`` is fixed for the lifetime of the set.

Contract (do not break):
  - stddev >= 0 always; exactly 0 is a legal absorbing state, never an error.
  - Only :meth:`GaussianFieldSet.replace` mutates the set, and it swaps both
    tensors together after validating shapes.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

import torch

from .errors import ConfigurationError


class GaussianFieldSet:
    """Per-coordinate (mean, stddev) table for ``outputs`` x ``inputs`` weights."""

    def __init__(self, mean: torch.Tensor, stddev: torch.Tensor) -> None:
        if mean.dim() != 2 or mean.shape != stddev.shape:
            raise ConfigurationError(
                f"mean/stddev must share one 2-D shape, got {tuple(mean.shape)} and {tuple(stddev.shape)}"
            )
        if mean.shape[0] <= 0 or mean.shape[1] <= 0:
            raise ConfigurationError(f"field set dimensions must be positive, got {tuple(mean.shape)}")
        if not bool((stddev >= 0).all()):
            raise ConfigurationError("stddev must be non-negative and not NaN")
        self.mean = mean
        self.stddev = stddev

    @classmethod
    def prior(
        cls,
        outputs: int,
        inputs: int,
        *,
        dtype: torch.dtype = torch.float32,
        device: Any = "cpu",
    ) -> "GaussianFieldSet":
        """Uninformed prior: mean 0, stddev 1 everywhere."""
        outputs, inputs = int(outputs), int(inputs)
        if outputs <= 0 or inputs <= 0:
            raise ConfigurationError(f"outputs and inputs must be positive, got ({outputs}, {inputs})")
        return cls(
            torch.zeros((outputs, inputs), dtype=dtype, device=device),
            torch.ones((outputs, inputs), dtype=dtype, device=device),
        )

    @property
    def outputs(self) -> int:
        return int(self.mean.shape[0])

    @property
    def inputs(self) -> int:
        return int(self.mean.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.outputs, self.inputs)

    def __getitem__(self, index: Tuple[int, int]) -> Tuple[float, float]:
        unit, dim = index
        return float(self.mean[unit, dim]), float(self.stddev[unit, dim])

    def replace(self, mean: torch.Tensor, stddev: torch.Tensor) -> None:
        """Swap in a new belief of the same shape."""
        if tuple(mean.shape) != self.shape or tuple(stddev.shape) != self.shape:
            raise ConfigurationError(
                f"replacement shape mismatch: expected {self.shape}, "
                f"got {tuple(mean.shape)} and {tuple(stddev.shape)}"
            )
        if not bool((stddev >= 0).all()):
            raise ConfigurationError("stddev must be non-negative and not NaN")
        self.mean = mean.to(dtype=self.mean.dtype, device=self.mean.device)
        self.stddev = stddev.to(dtype=self.stddev.dtype, device=self.stddev.device)

    def collapsed(self) -> int:
        """Number of coordinates whose stddev is exactly 0."""
        return int((self.stddev == 0).sum().item())

    def clone(self) -> "GaussianFieldSet":
        return GaussianFieldSet(self.mean.clone(), self.stddev.clone())

    def equals(self, other: "GaussianFieldSet") -> bool:
        return torch.equal(self.mean, other.mean) and torch.equal(self.stddev, other.stddev)

    def state_dict(self) -> Dict[str, torch.Tensor]:
        return {
            "mean": self.mean.detach().cpu().clone(),
            "stddev": self.stddev.detach().cpu().clone(),
        }

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        try:
            mean = torch.as_tensor(state["mean"])
            stddev = torch.as_tensor(state["stddev"])
        except KeyError as exc:
            raise ConfigurationError(f"field state missing key {exc}") from exc
        self.replace(mean, stddev)

    def __repr__(self) -> str:
        return f"GaussianFieldSet(outputs={self.outputs}, inputs={self.inputs}, collapsed={self.collapsed()})"


__all__ = [
    "GaussianFieldSet",
]
