"""Strand - a declarative plugin manager."""

__app_name__ = "strand"
__version__ = "0.2.0"
