"""Fitness oracles and the score contract guard.

An oracle is any callable ``oracle(q, k, v) -> scores`` taking three
population output matrices of shape ``[P, O]`` and returning ``P`` real
scores. Lower is more elite. Single-bank networks pass the same matrix three
times; Q/K/V networks pass one matrix per bank.

:class:`SelfEntropyOracle` is the default: for every member ``i``

    a      = softmax_j( dot(k_i, q_j) )          # attention over members
    e      = softmax_u( sum_j a_j * v[j, u] )    # mixed output distribution
    H(i)   = -sum_u e_u * log(e_u)

i.e. the self-information of the attention-weighted population output as seen
from member ``i``.
"""

from __future__ import annotations

from typing import Any, Protocol

import torch

from .errors import OracleContractViolation


class FitnessOracle(Protocol):
    def __call__(self, q: torch.Tensor, k: torch.Tensor, v: torch.Tensor) -> Any: ...


class SelfEntropyOracle:
    """Attention-style self-entropy over a population output triple."""

    def __call__(self, q: torch.Tensor, k: torch.Tensor, v: torch.Tensor) -> torch.Tensor:
        if q.shape != k.shape or k.shape != v.shape or q.dim() != 2:
            raise OracleContractViolation(
                f"self-entropy expects three equal [P, O] matrices, got "
                f"{tuple(q.shape)}, {tuple(k.shape)}, {tuple(v.shape)}"
            )
        attn = torch.softmax(k @ q.transpose(0, 1), dim=1)  # [P, P]
        mixed = torch.softmax(attn @ v, dim=1)  # [P, O]
        return -torch.special.xlogy(mixed, mixed).sum(dim=1)

    def __repr__(self) -> str:
        return "SelfEntropyOracle()"


def check_scores(scores: Any, population: int, *, dtype: torch.dtype = torch.float32) -> torch.Tensor:
    """Validate oracle output and return it as a 1-D tensor of length ``population``.

    Raises OracleContractViolation on a wrong count or on NaN/Inf. Sorting
    with NaN has no defined order, so such scores are never ranked.
    """
    try:
        tenval = torch.as_tensor(scores, dtype=dtype).detach().cpu()
    except (TypeError, ValueError, RuntimeError) as exc:
        raise OracleContractViolation(f"oracle scores are not numeric: {exc}") from exc

    if tenval.dim() != 1 or int(tenval.shape[0]) != int(population):
        raise OracleContractViolation(
            f"oracle returned shape {tuple(tenval.shape)}, expected ({int(population)},)"
        )
    if not bool(torch.isfinite(tenval).all()):
        badcnt = int((~torch.isfinite(tenval)).sum().item())
        raise OracleContractViolation(f"oracle returned {badcnt} non-finite score(s)")
    return tenval


__all__ = [
    "FitnessOracle",
    "SelfEntropyOracle",
    "check_scores",
]
