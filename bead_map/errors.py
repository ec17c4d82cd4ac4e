# bead_map/errors.py
from __future__ import annotations

"""
Exception taxonomy for grid operations.

  BeadMapError          base class
  InvariantViolation    refused operation, state unchanged; `.reason` holds a short code
  PreconditionNotMet    operation attempted before a full regeneration
  EmptyPaletteError     regeneration requested with no active colours

Identities with no resolvable RGB are reported through utils.warn, never raised.
"""

NO_REMAP_TARGET = "no-remap-target"
NOT_ERASABLE = "not-erasable"
NO_BACKGROUND = "no-background"
NOTHING_REMOVABLE = "nothing-removable"
ALREADY_EXCLUDED = "already-excluded"
NOT_EXCLUDED = "not-excluded"
NOT_PAINTABLE = "not-paintable"


class BeadMapError(Exception):
    """Base class for engine errors."""


class InvariantViolation(BeadMapError):
    """Operation refused because applying it would break a grid invariant."""

    def __init__(self, reason: str, message: str = "") -> None:
        super().__init__(message or reason)
        self.reason = reason


class PreconditionNotMet(BeadMapError):
    """No grid has been produced yet."""


class EmptyPaletteError(BeadMapError):
    """Regeneration requested with zero active colours."""


__all__ = [
    "NO_REMAP_TARGET",
    "NOT_ERASABLE",
    "NO_BACKGROUND",
    "NOTHING_REMOVABLE",
    "ALREADY_EXCLUDED",
    "NOT_EXCLUDED",
    "NOT_PAINTABLE",
    "BeadMapError",
    "InvariantViolation",
    "PreconditionNotMet",
    "EmptyPaletteError",
]
