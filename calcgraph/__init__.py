"""
calcgraph: dependency graph and change-impact engine for versioned
calculation configurations.
"""

__version__ = "1.0.0"

from calcgraph.utils.logging import configure_logging  # noqa: E402

__all__ = ["configure_logging"]
