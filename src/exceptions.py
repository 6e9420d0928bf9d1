"""
Exception hierarchy for ML Decision Tree
========================================

All errors raised by the package derive from :class:`DecisionTreeError`.
"""

from typing import Optional


class DecisionTreeError(Exception):
    """Base class for all package exceptions.

    Parameters
    ----------
    message:
        Human readable description of the error.
    round_index:
        Optional cross-validation round the error was raised in.
    """

    def __init__(self, message: str, *, round_index: Optional[int] = None) -> None:
        if round_index is not None:
            message = f"{message} (round={round_index})"
        super().__init__(message)
        self.round_index = round_index


class ConfigurationError(DecisionTreeError, ValueError):
    """Invalid builder, termination or cross-validation settings."""


class InvalidInputError(DecisionTreeError, ValueError):
    """Input data that an operation cannot work with."""


class InvalidStateError(DecisionTreeError, RuntimeError):
    """Operation requested before the object could answer it."""


__all__ = [
    "DecisionTreeError",
    "ConfigurationError",
    "InvalidInputError",
    "InvalidStateError",
]
