"""Secrets-store CSI rotation controller."""

__version__ = "0.1.0"
