"""Network: composition root of the entropy-ranked EDA engine.

One :meth:`Network.fire` call runs a full cycle:

    sample -> project -> score (oracle) -> rank -> re-estimate -> respond

Bank wiring:
  - banks=1: one field set ``"w"``; the oracle sees its output matrix as
    ``(M, M, M)``; the best member's output is returned.
  - banks=3: field sets ``"q"``, ``"k"``, ``"v"`` drawn against the same
    input; one oracle call ``(Q, K, V)`` yields one shared ranking that drives
    all three updates; the best-ranked ``"v"`` output is returned.

Concurrency contract:
  - ``window`` is read once at the top of each cycle under its own lock, so
    :meth:`set_window` may be called from another thread at any time and
    never waits for an in-flight cycle.
  - Cycles on one instance are serialized by a second lock; the belief is
    replaced only after every bank's estimate has been computed.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import torch

from .elitism import check_window, elite_estimate, rank
from .ensemble import Population, as_input, evaluate_banks
from .errors import ConfigurationError
from .field import GaussianFieldSet
from .log import log
from .oracle import FitnessOracle, SelfEntropyOracle, check_scores
from .rng import RandomStream


BANKS_SINGLE: Tuple[str, ...] = ("w",)
BANKS_QKV: Tuple[str, ...] = ("q", "k", "v")
BANK_LAYOUTS: Mapping[int, Tuple[str, ...]] = {1: BANKS_SINGLE, 3: BANKS_QKV}


def _config_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


@dataclass
class FireCycle:
    """Record of the most recent cycle (read-only for callers)."""

    window: int
    populations: Dict[str, Population]
    scores: torch.Tensor  # [P]
    order: torch.Tensor  # [P], ascending fitness

    @property
    def best(self) -> int:
        return int(self.order[0])

    @property
    def elite(self) -> torch.Tensor:
        return self.order[: self.window]


class Network:
    """Gaussian belief over 1 or 3 banks of sign-quantized linear neurons."""

    def __init__(
        self,
        inputs: int,
        outputs: int,
        *,
        seed: int = 1,
        window: int = 8,
        population: int = 256,
        banks: int = 1,
        oracle: Optional[FitnessOracle] = None,
        dtype: torch.dtype = torch.float32,
        device: Any = "cpu",
        log_every: int = 0,
    ) -> None:
        self.inputs = _config_int("inputs", inputs)
        self.outputs = _config_int("outputs", outputs)
        if self.inputs <= 0 or self.outputs <= 0:
            raise ConfigurationError(f"inputs and outputs must be positive, got ({self.inputs}, {self.outputs})")
        banks = _config_int("banks", banks)
        if banks not in BANK_LAYOUTS:
            raise ConfigurationError(f"banks must be one of {sorted(BANK_LAYOUTS)}, got {banks!r}")

        self.population = _config_int("population", population)
        self._window = check_window(window, self.population)
        self.banks = banks
        self.bank_names = BANK_LAYOUTS[self.banks]
        self.surface = self.bank_names[-1]

        self.dtype = dtype
        self.device = torch.device(device)
        self.rng = RandomStream(seed, device=self.device)
        self.oracle: FitnessOracle = oracle if oracle is not None else SelfEntropyOracle()
        self.fields: Dict[str, GaussianFieldSet] = {
            name: GaussianFieldSet.prior(self.outputs, self.inputs, dtype=dtype, device=self.device)
            for name in self.bank_names
        }

        self.log_every = max(0, int(log_every))
        self.fires = 0
        self.last_cycle: Optional[FireCycle] = None
        self._collapse_seen: set[str] = set()

        self._window_lock = threading.Lock()
        self._fire_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        inputs: int,
        outputs: int,
        *,
        oracle: Optional[FitnessOracle] = None,
    ) -> "Network":
        """Build a network from :class:`edanet.settings.Settings`."""
        return cls(
            inputs,
            outputs,
            seed=settings.seed,
            window=settings.window,
            population=settings.population,
            banks=settings.banks,
            oracle=oracle,
            dtype=settings.dtype,
            device=settings.device,
            log_every=settings.log_every,
        )

    # ---- window ----

    @property
    def window(self) -> int:
        with self._window_lock:
            return self._window

    def set_window(self, window: int) -> None:
        """Replace the elite window; rejects values outside [1, population]."""
        winval = check_window(window, self.population)
        with self._window_lock:
            self._window = winval

    # ---- belief access ----

    @property
    def field(self) -> GaussianFieldSet:
        """The only field set of a single-bank network."""
        if self.banks != 1:
            raise AttributeError("field is only defined for single-bank networks; use fields[name]")
        return self.fields[self.bank_names[0]]

    def collapsed(self) -> Dict[str, int]:
        return {name: fldobj.collapsed() for name, fldobj in self.fields.items()}

    # ---- cycle ----

    def _score(self, populations: Mapping[str, Population]) -> Any:
        if self.banks == 1:
            matval = populations[self.bank_names[0]].outputs
            return self.oracle(matval, matval, matval)
        return self.oracle(*(populations[name].outputs for name in BANKS_QKV))

    def fire(self, vector: Any) -> torch.Tensor:
        """Run one evaluate-rank-update cycle and return the best output ``[O]``."""
        with self._fire_lock:
            window = self.window
            vec = as_input(vector, self.inputs, dtype=self.dtype, device=self.device)

            populations = evaluate_banks(self.fields, vec, self.population, self.rng)
            scores = check_scores(self._score(populations), self.population, dtype=self.dtype)
            window = check_window(window, self.population)
            order = rank(scores)

            estimates = {
                name: elite_estimate(popobj.weights, order, window)
                for name, popobj in populations.items()
            }
            for name, (mean, stddev) in estimates.items():
                self.fields[name].replace(mean, stddev)

            for popobj in populations.values():
                popobj.fitness = scores

            self.fires += 1
            self.last_cycle = FireCycle(window=window, populations=populations, scores=scores, order=order)
            self._observe(self.last_cycle)

            return populations[self.surface].outputs[int(order[0])].clone()

    def _observe(self, cycle: FireCycle) -> None:
        colmap = self.collapsed()
        for name, colcnt in colmap.items():
            if colcnt > 0 and name not in self._collapse_seen:
                self._collapse_seen.add(name)
                log(
                    f"[edanet] bank={name} collapsed {colcnt}/{self.outputs * self.inputs} "
                    f"coordinate(s) to stddev=0 at fire={self.fires}"
                )

        if self.log_every and self.fires % self.log_every == 0:
            colstr = " ".join(f"{name}={colcnt}" for name, colcnt in colmap.items())
            log(
                f"[edanet] fire={self.fires} best={float(cycle.scores[cycle.best]):.6f} "
                f"mean={float(cycle.scores.mean()):.6f} window={cycle.window} collapsed[{colstr}]"
            )

    # ---- persistence ----

    def state_dict(self) -> Dict[str, Any]:
        with self._fire_lock:
            return {
                "inputs": self.inputs,
                "outputs": self.outputs,
                "population": self.population,
                "banks": self.banks,
                "window": self.window,
                "fires": self.fires,
                "fields": {name: fldobj.state_dict() for name, fldobj in self.fields.items()},
                "rng_state": self.rng.get_state().clone(),
            }

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        """Restore belief, window and random stream; dimensions must match."""
        for keystr, curval in (
            ("inputs", self.inputs),
            ("outputs", self.outputs),
            ("banks", self.banks),
        ):
            if int(state.get(keystr, -1)) != curval:
                raise ConfigurationError(
                    f"snapshot {keystr}={state.get(keystr)!r} does not match network {keystr}={curval}"
                )
        fldmap = state.get("fields") or {}
        if set(fldmap) != set(self.bank_names):
            raise ConfigurationError(f"snapshot banks {sorted(fldmap)} do not match {list(self.bank_names)}")

        with self._fire_lock:
            staged = {name: fldobj.clone() for name, fldobj in self.fields.items()}
            for name, fldobj in staged.items():
                fldobj.load_state_dict(fldmap[name])
            window = check_window(state.get("window", self.window), self.population)

            self.fields = staged
            self.set_window(window)
            self.fires = int(state.get("fires", 0))
            rngsta = state.get("rng_state")
            if rngsta is not None:
                self.rng.set_state(torch.as_tensor(rngsta, dtype=torch.uint8))
            self._collapse_seen = {name for name, colcnt in self.collapsed().items() if colcnt > 0}

    def __repr__(self) -> str:
        return (
            f"Network(inputs={self.inputs}, outputs={self.outputs}, banks={self.banks}, "
            f"population={self.population}, window={self.window}, fires={self.fires})"
        )


__all__ = [
    "BANKS_SINGLE",
    "BANKS_QKV",
    "FireCycle",
    "Network",
]
