"""Exception taxonomy for the EDA engine.

Two failure classes abort work:
  - ConfigurationError: rejected before any sampling or mutation happens.
  - OracleContractViolation: the fitness oracle returned unusable scores; the
    current Fire call aborts and the belief state is left untouched.

A stddev collapsing to exactly 0 is *not* an error and has no exception type.
"""

from __future__ import annotations


class EdaError(Exception):
    """Base class for all edanet errors."""


class ConfigurationError(EdaError, ValueError):
    """Invalid window, population size, dimensions, bank count or input shape."""


class OracleContractViolation(EdaError, RuntimeError):
    """Fitness oracle returned the wrong number of scores or non-finite values."""


__all__ = [
    "EdaError",
    "ConfigurationError",
    "OracleContractViolation",
]
