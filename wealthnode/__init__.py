"""WealthNode - 24/7 crypto paper trading node."""

__version__ = "1.0.0"
