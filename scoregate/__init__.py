"""Supply-chain security gate for project dependencies."""

__version__ = "0.1.0"
