"""Scheduled key double-press daemon with hot-reloaded configuration."""

__version__ = "0.1.0"
