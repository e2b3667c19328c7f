"""Handler for ParkedDomain CRD."""

from __future__ import annotations

from typing import Any

import kopf

from ..config import OperatorConfig
from ..constants import API_GROUP_VERSION, KIND_PARKED_DOMAIN, STATUS_PROVISIONED
from ..models import IntentKey
from ..reconciler import ReconcileResult, ReconciliationEngine
from ..utils.errors import sanitize_exception
from ..utils.events import (
    emit_cleanup_completed,
    emit_cleanup_failed,
    emit_finalizer_registered,
    emit_provisioned,
    emit_reconcile_failed,
)
from ..utils.locks import KeyLocks
from .base import BaseHandler


class ParkedDomainHandler(BaseHandler):
    """Handler for ParkedDomain resources.

    All work is delegated to the reconciliation engine, which re-reads the
    resource itself; this class only maps results onto kopf retries and
    Kubernetes events. Passes over the same key are serialized, since the
    timer and the change handlers of one object may fire together.
    """

    def __init__(self, retry_delay: float = 30.0):
        """Initialize parked domain handler."""
        super().__init__(KIND_PARKED_DOMAIN, retry_delay=retry_delay)
        self.locks = KeyLocks()

    @classmethod
    def from_config(cls, operator_config: OperatorConfig) -> ParkedDomainHandler:
        return cls(retry_delay=float(operator_config.retry_delay_seconds))

    def _run(self, engine: ReconciliationEngine, key: IntentKey) -> ReconcileResult:
        with self.locks.lock(key):
            return engine.reconcile(key)

    def reconcile(self, engine: ReconciliationEngine, body: dict[str, Any], meta: dict[str, Any]) -> None:
        """Converge a live ParkedDomain."""
        key = IntentKey(meta.get("namespace", "default"), meta.get("name", ""))
        domain_name = body.get("spec", {}).get("domainName", "")

        result = self._run(engine, key)

        if result.error is not None:
            message = f"Reconciliation failed: {sanitize_exception(result.error)}"
            self.log_error(meta, message, error=result.error, reason="ReconcileFailed", domain_name=domain_name)
            emit_reconcile_failed(body, message)
        elif result.requeue:
            self.log_info(meta, f"Finalizer added to {key}", reason="FinalizerAdded")
            emit_finalizer_registered(body)
        else:
            self.log_info(meta, f"ParkedDomain {key} is provisioned", reason="Provisioned", domain_name=domain_name)
            if body.get("status", {}).get("status") != STATUS_PROVISIONED:
                emit_provisioned(body, domain_name)

        self.raise_for_result(meta, result)

    def delete(self, engine: ReconciliationEngine, body: dict[str, Any], meta: dict[str, Any]) -> None:
        """Tear down a ParkedDomain that is marked for deletion."""
        key = IntentKey(meta.get("namespace", "default"), meta.get("name", ""))
        domain_name = body.get("spec", {}).get("domainName", "")
        self.log_info(meta, f"ParkedDomain {key} is being deleted", reason="Deletion", domain_name=domain_name)

        result = self._run(engine, key)

        if result.error is not None:
            message = f"Cleanup failed: {sanitize_exception(result.error)}"
            self.log_error(meta, message, error=result.error, reason="CleanupFailed", domain_name=domain_name)
            emit_cleanup_failed(body, message)
        else:
            self.log_info(meta, f"Cleanup complete for {key}", reason="CleanupCompleted", domain_name=domain_name)
            emit_cleanup_completed(body, domain_name)

        self.raise_for_result(meta, result)


# kopf needs the timer interval when the handlers are registered, before startup
RESYNC_INTERVAL_SECONDS = OperatorConfig.from_env().resync_interval_seconds


@kopf.on.create(API_GROUP_VERSION, KIND_PARKED_DOMAIN)
@kopf.on.update(API_GROUP_VERSION, KIND_PARKED_DOMAIN)
@kopf.on.resume(API_GROUP_VERSION, KIND_PARKED_DOMAIN)
@kopf.timer(API_GROUP_VERSION, KIND_PARKED_DOMAIN, interval=RESYNC_INTERVAL_SECONDS)
def handle_parked_domain(
    body: kopf.Body,
    meta: kopf.Meta,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Handle ParkedDomain resource reconciliation."""
    memo.handler.reconcile(memo.engine, dict(body), dict(meta))


# optional=True: kopf adds no finalizer of its own for this handler, the
# engine's token is what keeps the resource around until cleanup is done.
@kopf.on.delete(API_GROUP_VERSION, KIND_PARKED_DOMAIN, optional=True)
def handle_parked_domain_delete(
    body: kopf.Body,
    meta: kopf.Meta,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Handle ParkedDomain resource deletion."""
    memo.handler.delete(memo.engine, dict(body), dict(meta))
