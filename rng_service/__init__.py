"""HTTP service generating cryptographically secure random floats."""

__version__ = "0.1.0"
