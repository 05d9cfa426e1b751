"""Release Train — version comparison and promotion engine."""

__version__ = "0.1.0"
