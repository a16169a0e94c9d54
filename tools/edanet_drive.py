"""Driving loops for an edanet Network.

The engine only answers one Fire call at a time; these loops supply inputs,
read the sign bits of each answer and turn them into a discrete decision.
The bit -> decision tables below are caller policy, not engine behavior.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional, Sequence, Tuple

import torch

from .edanet_data import byte_features


CATEGORY_NAMES: Tuple[str, ...] = (
    "black",
    "blue",
    "red",
    "green",
    "cyan",
    "yellow",
    "magenta",
    "hi_magenta",
)

StepFn = Callable[[int, int], None]


def sign_code(output: torch.Tensor | Sequence[float], bits: Optional[int] = None) -> int:
    """Bit ``i`` is set iff ``output[i] > 0`` (first ``bits`` outputs, or all)."""

    values = [float(v) for v in output]
    if bits is not None:
        values = values[: int(bits)]
    code = 0
    for bitpos, valnum in enumerate(values):
        if valnum > 0:
            code |= 1 << bitpos
    return code


def wander(net, table: torch.Tensor, data: bytes, on_step: Optional[StepFn] = None) -> list[int]:
    """Visit every position of ``data`` once, letting the network pick each jump.

    From the current position the network fires on that byte's embedding; its
    sign code (mod ``len(data)``) is the jump target, and the walk probes
    forward (wrapping) to the first position not yet visited.
    """

    length = len(data)
    if length == 0:
        return []

    position = 0
    seen: set[int] = set()
    order: list[int] = [position]
    while True:
        out = net.fire(byte_features(table, data, position))
        seen.add(position)
        if len(seen) == length:
            break
        position = sign_code(out) % length
        while position in seen:
            position = (position + 1) % length
        order.append(position)
        if on_step is not None:
            on_step(position, data[position])
    return order


def classify(
    net,
    table: torch.Tensor,
    data: bytes,
    iterations: Optional[int] = None,
) -> Iterator[Tuple[int, int, int]]:
    """Yield ``(position, byte, category)`` for each position, category in [0, 8)."""

    limit = len(data) if iterations is None else min(int(iterations), len(data))
    for position in range(limit):
        out = net.fire(byte_features(table, data, position, with_position=True))
        yield position, data[position], sign_code(out, 3)


__all__ = [
    "CATEGORY_NAMES",
    "sign_code",
    "wander",
    "classify",
]
