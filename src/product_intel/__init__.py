"""Deterministic product scoring pipeline."""

__version__ = "0.1.0"
