from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when generation inputs are rejected before any stage runs."""
