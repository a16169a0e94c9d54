"""edanet: entropy-ranked estimation-of-distribution network.

A gradient-free way to adapt a random sign-quantized linear projection: keep
a Gaussian belief over the weights, draw a population, score it with a
self-entropy oracle, and re-fit the belief to the lowest-scoring elite.

Public API
----------
Network:
    Network, FireCycle, BANKS_SINGLE, BANKS_QKV

Belief & sampling:
    GaussianFieldSet, RandomStream, Population, Sample,
    sample, quantize, evaluate

Fitness:
    FitnessOracle, SelfEntropyOracle

Errors:
    EdaError, ConfigurationError, OracleContractViolation

Configuration:
    Settings, load_settings

Snapshots:
    save_snapshot, load_snapshot
"""

__version__ = "0.1.0"

# Network
from .core.network import BANKS_QKV, BANKS_SINGLE, FireCycle, Network

# Belief & sampling
from .core.field import GaussianFieldSet
from .core.rng import RandomStream
from .core.ensemble import Population, Sample, evaluate
from .core.sampler import quantize, sample

# Fitness
from .core.oracle import FitnessOracle, SelfEntropyOracle

# Errors
from .core.errors import ConfigurationError, EdaError, OracleContractViolation

# Configuration
from .settings import Settings, load_settings

# Snapshots
from .core.snapshot import load_snapshot, save_snapshot

__all__ = [
    # Network
    "Network",
    "FireCycle",
    "BANKS_SINGLE",
    "BANKS_QKV",
    # Belief & sampling
    "GaussianFieldSet",
    "RandomStream",
    "Population",
    "Sample",
    "sample",
    "quantize",
    "evaluate",
    # Fitness
    "FitnessOracle",
    "SelfEntropyOracle",
    # Errors
    "EdaError",
    "ConfigurationError",
    "OracleContractViolation",
    # Configuration
    "Settings",
    "load_settings",
    # Snapshots
    "save_snapshot",
    "load_snapshot",
]
