"""Failure values returned by mutating engine operations.

Engine operations never raise for gameplay-level problems such as a short
balance or an unknown catalog ID. They return a :class:`Failure` describing
what went wrong and leave the actor untouched, so the host layer can decide
how to message the player.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_REFERENCE = "invalid_reference"
    INVALID_INPUT = "invalid_input"
    STALE_WINDOW = "stale_window"


@dataclass(frozen=True)
class Failure:
    """Why an operation was rejected. State is unchanged when one is returned."""

    kind: ErrorKind
    message: str
    resource: Optional[str] = None
    required: float = 0.0
    available: float = 0.0

    @property
    def shortfall(self) -> float:
        return max(0.0, self.required - self.available)

    @staticmethod
    def insufficient_funds(resource: str, required: float, available: float) -> "Failure":
        return Failure(
            kind=ErrorKind.INSUFFICIENT_FUNDS,
            message=f"Not enough {resource}: need {required:g}, have {available:g}",
            resource=resource,
            required=required,
            available=available,
        )

    @staticmethod
    def invalid_input(message: str) -> "Failure":
        return Failure(kind=ErrorKind.INVALID_INPUT, message=message)

    @staticmethod
    def invalid_reference(category: str, identifier: str) -> "Failure":
        return Failure(
            kind=ErrorKind.INVALID_REFERENCE,
            message=f"Unknown {category} '{identifier}'",
        )

    @staticmethod
    def stale_window(elapsed: float, minimum: float) -> "Failure":
        return Failure(
            kind=ErrorKind.STALE_WINDOW,
            message=f"Only {elapsed:.1f}s elapsed; catch-up needs at least {minimum:g}s",
        )


__all__ = ["ErrorKind", "Failure"]
