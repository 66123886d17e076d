"""Structural matching of donor fragments against target nodes."""

__all__ = [
    "context",
    "sequence",
    "structure",
]
