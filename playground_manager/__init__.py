"""Ephemeral TiUP playground clusters for CI pipelines."""

__version__ = "0.1.0"
