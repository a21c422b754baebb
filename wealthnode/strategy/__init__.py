"""Trading strategy components."""

from .position import PositionSizer

__all__ = [
    "PositionSizer",
]
