"""Status reporter: makes the outcome of each reconciliation observable."""

from __future__ import annotations

import logging

from .constants import STATUS_ERROR_PREFIX, STATUS_PROVISIONED
from .models import Intent, IntentStatus, ZoneRef
from .store import IntentStore
from .utils.errors import sanitize_exception

logger = logging.getLogger(__name__)


def error_state(stage: str) -> str:
    return f"{STATUS_ERROR_PREFIX}{stage}"


class StatusReporter:
    """Writes ``status``, ``zoneID`` and ``nameServers`` onto the intent."""

    def __init__(self, store: IntentStore):
        self.store = store

    def report_provisioned(self, intent: Intent, zone: ZoneRef) -> None:
        """Record a fully converged intent; write failures propagate."""
        desired = IntentStatus(state=STATUS_PROVISIONED, zone_id=zone.id, name_servers=list(zone.name_servers))
        if intent.status == desired:
            return
        self.store.patch_status(intent.key, desired.to_dict())

    def report_failure(self, intent: Intent, stage: str) -> bool:
        """Record the failing stage, leaving zoneID and nameServers alone.

        Returns False if the status could not be written; the caller still
        reports the stage error, which is the more useful one to retry on.
        """
        try:
            self.store.patch_status(intent.key, {"status": error_state(stage)})
        except Exception as e:
            logger.error(
                f"Failed to record stage failure on {intent.key}: {sanitize_exception(e)}",
                extra={"intent": str(intent.key), "stage": stage},
            )
            return False
        return True
