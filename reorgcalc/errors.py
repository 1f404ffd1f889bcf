"""Error kinds raised by the reorg calculator.

Every failure is raised to the caller; nothing here is retried.
"""

from __future__ import annotations


class ReorgCalcError(Exception):
    pass


class RangeError(ReorgCalcError, ValueError):
    """Malformed height range (fork above tip, negative height, tip past the chain)."""


class SourceUnavailable(ReorgCalcError, RuntimeError):
    """The chain-data source could not answer a query (unknown height, RPC/HTTP failure)."""


class InvalidBudget(ReorgCalcError, ValueError):
    """Budget with neither or both of hashrate/duration set, or a non-positive value."""


class DivisionDomainError(ReorgCalcError, ArithmeticError):
    """A difficulty or work value that must be positive was not."""
