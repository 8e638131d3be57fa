"""User profile state, its binary layout, instructions and an in-memory account processor."""

__version__ = "0.1.0"
__all__ = ["errors", "state", "instruction", "processor"]