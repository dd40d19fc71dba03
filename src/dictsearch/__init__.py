"""Interactive full-text search over a data dictionary export."""

__version__ = "0.1.0"
