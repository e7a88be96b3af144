"""watchplus: run a command repeatedly, highlight and email its output changes."""

__version__ = "1.0.0"
__all__ = ["__version__"]
