"""Architech — declarative project scaffolding engine."""

__version__ = "0.1.0"
