"""University announcement board service."""

__version__ = "1.0.0"
