"""Utility functions for the Parked Domain Operator."""

from .errors import (
    sanitize_exception,
    translate_api_exception,
    translate_client_error,
)
from .events import (
    emit_cleanup_completed,
    emit_cleanup_failed,
    emit_finalizer_registered,
    emit_provisioned,
    emit_reconcile_failed,
)

__all__ = [
    "sanitize_exception",
    "translate_api_exception",
    "translate_client_error",
    "emit_cleanup_completed",
    "emit_cleanup_failed",
    "emit_finalizer_registered",
    "emit_provisioned",
    "emit_reconcile_failed",
]
