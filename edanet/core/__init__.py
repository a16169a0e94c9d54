"""EDA engine internals.

One module = one concern. The stable public surface is re-exported by
:mod:`edanet`; import from there unless you need a helper that is not.
"""

from __future__ import annotations

from .elitism import check_window, elite_estimate, elite_update, rank
from .ensemble import Population, Sample, as_input, evaluate, evaluate_banks
from .errors import ConfigurationError, EdaError, OracleContractViolation
from .field import GaussianFieldSet
from .network import BANKS_QKV, BANKS_SINGLE, FireCycle, Network
from .oracle import FitnessOracle, SelfEntropyOracle, check_scores
from .rng import RandomStream, seed_everything
from .sampler import quantize, sample, sample_many
from .snapshot import load_snapshot, read_snapshot, save_snapshot

__all__ = [
    "check_window",
    "elite_estimate",
    "elite_update",
    "rank",
    "Population",
    "Sample",
    "as_input",
    "evaluate",
    "evaluate_banks",
    "ConfigurationError",
    "EdaError",
    "OracleContractViolation",
    "GaussianFieldSet",
    "BANKS_QKV",
    "BANKS_SINGLE",
    "FireCycle",
    "Network",
    "FitnessOracle",
    "SelfEntropyOracle",
    "check_scores",
    "RandomStream",
    "seed_everything",
    "quantize",
    "sample",
    "sample_many",
    "load_snapshot",
    "read_snapshot",
    "save_snapshot",
]
