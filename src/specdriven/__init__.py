"""specdriven: task graph toolkit for spec-driven development workflows."""

from specdriven.config import VERSION as __version__

__all__ = ["__version__"]
