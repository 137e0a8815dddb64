"""Shrink CBZ manga archives by cutting out gutters, binarizing and resizing pages."""

__version__ = "0.1.0"
__all__ = ["__version__"]