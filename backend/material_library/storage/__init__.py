"""Physical storage on the shared drive."""

from .physical_tree import PhysicalTreeAdapter

__all__ = ["PhysicalTreeAdapter"]
