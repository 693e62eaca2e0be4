"""Walk a directory's management hierarchy and stream it as CSV."""

__version__ = "0.1.0"
