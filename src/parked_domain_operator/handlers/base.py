"""Base class for resource handlers."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from ..errors import ConfigurationError, StageError
from ..reconciler import ReconcileResult
from ..utils.errors import sanitize_exception


class BaseHandler:
    """Logging and kopf error translation shared by resource handlers."""

    def __init__(self, kind: str, retry_delay: float = 30.0):
        self.kind = kind
        self.retry_delay = retry_delay
        self.logger = logging.getLogger(f"{__name__}.{kind.lower()}")

    def _extra(self, meta: dict[str, Any], reason: str | None, **kwargs: Any) -> dict[str, Any]:
        extra = {
            "kind": self.kind,
            "namespace": meta.get("namespace", "default"),
            "resource_name": meta.get("name", "unknown"),
            "uid": meta.get("uid"),
        }
        if reason:
            extra["reason"] = reason
        extra.update(kwargs)
        return extra

    def log_info(self, meta: dict[str, Any], message: str, reason: str | None = None, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._extra(meta, reason, **kwargs))

    def log_warning(self, meta: dict[str, Any], message: str, reason: str | None = None, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._extra(meta, reason, **kwargs))

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: BaseException | None = None,
        reason: str | None = None,
        **kwargs: Any,
    ) -> None:
        if error is not None:
            kwargs["error"] = sanitize_exception(error)
            kwargs["error_type"] = type(error).__name__
        self.logger.error(message, extra=self._extra(meta, reason, **kwargs))

    def raise_for_result(self, meta: dict[str, Any], result: ReconcileResult) -> None:
        """Turn a failed or requeued result into a kopf retry."""
        if result.error is not None:
            error = result.error
            cause = error.cause if isinstance(error, StageError) else error
            if isinstance(cause, ConfigurationError):
                # Only clears when the resource or the template ConfigMap changes
                self.log_warning(meta, "Configuration error, fix the resource or its template", reason="InvalidConfig")
            raise kopf.TemporaryError(sanitize_exception(error), delay=self.retry_delay)
        if result.requeue:
            raise kopf.TemporaryError("requeued", delay=1)
