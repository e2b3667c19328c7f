"""Reconciliation engine for ParkedDomain intents.

Every call re-derives the full picture from the store and the remote
systems; the only state carried between calls is what is persisted on the
intent itself (finalizer, zoneID, nameServers).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from . import metrics
from .config import OperatorConfig
from .constants import (
    KIND_PARKED_DOMAIN,
    STAGE_BUCKET,
    STAGE_CLEANUP,
    STAGE_RECORD,
    STAGE_VALIDATION,
    STAGE_ZONE,
)
from .drivers import BucketDriver, RecordDriver, ZoneDriver
from .errors import ConfigurationError, NotFoundError, StageError
from .finalizer import FinalizerGate, FinalizerState
from .models import Intent, IntentKey, TemplateRef
from .status import StatusReporter
from .store import IntentStore
from .tracing import trace_span
from .utils.errors import sanitize_exception

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation.

    ``requeue`` asks for another pass soon without it being a failure;
    ``error`` is set when the pass failed and must be retried with backoff.
    """

    requeue: bool = False
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class ReconciliationEngine:
    """Drives one intent toward its zone, bucket and alias record.

    The engine keeps no locks: the caller must not run two reconciliations
    of the same key at once (the kopf handlers hold a lock per key).
    Different keys may be reconciled in parallel.
    """

    def __init__(
        self,
        store: IntentStore,
        zones: ZoneDriver,
        buckets: BucketDriver,
        records: RecordDriver,
        config: OperatorConfig | None = None,
    ):
        self.store = store
        self.zones = zones
        self.buckets = buckets
        self.records = records
        self.config = config or OperatorConfig()
        self.gate = FinalizerGate(store)
        self.status = StatusReporter(store)

    def reconcile(self, key: IntentKey) -> ReconcileResult:
        """Run one level-triggered reconciliation of ``key``."""
        start_time = time.time()
        metrics.reconcile_total.labels(kind=KIND_PARKED_DOMAIN, result="started").inc()
        try:
            with trace_span("reconcile", kind=KIND_PARKED_DOMAIN, attributes={"intent": str(key)}):
                result = self._reconcile(key)
        except Exception as e:
            logger.exception(f"Unexpected failure reconciling {key}", extra={"intent": str(key)})
            result = ReconcileResult(error=e)
        finally:
            metrics.reconcile_duration_seconds.labels(kind=KIND_PARKED_DOMAIN).observe(time.time() - start_time)

        if result.error is not None:
            metrics.reconcile_total.labels(kind=KIND_PARKED_DOMAIN, result="failed").inc()
        else:
            metrics.reconcile_total.labels(kind=KIND_PARKED_DOMAIN, result="success").inc()
        return result

    def _reconcile(self, key: IntentKey) -> ReconcileResult:
        try:
            intent = self.store.get(key)
        except NotFoundError:
            logger.info(f"ParkedDomain {key} not found, ignoring since it must have been deleted",
                        extra={"intent": str(key)})
            return ReconcileResult()
        except Exception as e:
            logger.error(f"Failed to get ParkedDomain {key}: {sanitize_exception(e)}", extra={"intent": str(key)})
            return ReconcileResult(error=e)

        state = self.gate.state_of(intent)
        if state is FinalizerState.REMOVED:
            return ReconcileResult()
        if state is FinalizerState.DELETING:
            return self._delete(intent)
        if state is FinalizerState.NO_FINALIZER:
            try:
                self.gate.register(intent)
            except Exception as e:
                return ReconcileResult(error=e)
            # The update changed the object's version; converge on the next pass.
            return ReconcileResult(requeue=True)
        return self._converge(intent)

    def _converge(self, intent: Intent) -> ReconcileResult:
        logger.info(f"Reconciling AWS resources for {intent.key}",
                    extra={"intent": str(intent.key), "domain_name": intent.domain_name})

        if not intent.domain_name:
            return self._fail(intent, STAGE_VALIDATION, ConfigurationError("spec.domainName is required"))

        try:
            zone = self.zones.ensure_zone(intent.domain_name, intent.key.name, intent.status.zone_id)
        except ConfigurationError as e:
            return self._fail(intent, STAGE_VALIDATION, e)
        except Exception as e:
            return self._fail(intent, STAGE_ZONE, e)

        template = TemplateRef(
            collection=self.config.template_collection(intent.key.namespace),
            key=intent.template_name,
        )
        try:
            bucket = intent.bucket
            endpoint = self.buckets.ensure_website_bucket(bucket.name, bucket.region, template)
        except Exception as e:
            return self._fail(intent, STAGE_BUCKET, e)

        try:
            self.records.upsert_alias_record(zone.id, intent.domain_name, endpoint, intent.region)
        except Exception as e:
            return self._fail(intent, STAGE_RECORD, e)

        try:
            self.status.report_provisioned(intent, zone)
        except Exception as e:
            logger.error(f"Failed to update ParkedDomain status for {intent.key}: {sanitize_exception(e)}",
                         extra={"intent": str(intent.key)})
            return ReconcileResult(error=e)

        logger.info(f"Successfully reconciled ParkedDomain {intent.key}",
                    extra={"intent": str(intent.key), "zone_id": zone.id})
        return ReconcileResult()

    def _delete(self, intent: Intent) -> ReconcileResult:
        logger.info(f"Performing cleanup for ParkedDomain {intent.key}", extra={"intent": str(intent.key)})

        # The alias record lives in the zone and goes with it.
        try:
            for bucket_name in self._owned_buckets(intent):
                self.buckets.teardown_bucket(bucket_name, intent.region)
            self.zones.teardown_zone(intent.status.zone_id)
        except Exception as e:
            return self._fail(intent, STAGE_CLEANUP, e)

        try:
            self.gate.release(intent)
        except Exception as e:
            logger.error(f"Failed to remove finalizer from {intent.key}: {sanitize_exception(e)}",
                         extra={"intent": str(intent.key)})
            return ReconcileResult(error=e)
        return ReconcileResult()

    def _owned_buckets(self, intent: Intent) -> list[str]:
        """Bucket names to tear down: spec.domainName and the recorded zone's domain."""
        names = []
        for name in (intent.domain_name, self.zones.zone_domain(intent.status.zone_id)):
            if name and name not in names:
                names.append(name)
        return names

    def _fail(self, intent: Intent, stage: str, error: Exception) -> ReconcileResult:
        logger.error(
            f"{stage} failed for {intent.key}: {sanitize_exception(error)}",
            extra={"intent": str(intent.key), "stage": stage, "error_type": type(error).__name__},
        )
        self.status.report_failure(intent, stage)
        return ReconcileResult(error=StageError(stage, error))
