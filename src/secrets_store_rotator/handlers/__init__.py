"""Handlers reconciling secrets-store resources."""

from .base import BaseHandler, ReconcileOutcome
from .rotation import RotationHandler

__all__ = ["BaseHandler", "ReconcileOutcome", "RotationHandler"]
