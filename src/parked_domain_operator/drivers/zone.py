"""Zone driver: the Route 53 hosted zone of a parked domain."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .. import metrics
from ..constants import (
    APEX_PROTECTED_RECORD_TYPES,
    CALLER_REFERENCE_PREFIX,
    KIND_PARKED_DOMAIN,
    MAX_CHANGES_PER_BATCH,
)
from ..errors import ConfigurationError, ConflictError, NotFoundError
from ..models import ZoneRef
from ..providers.base import DnsProvider
from ..tracing import trace_span

logger = logging.getLogger(__name__)


def zone_name(domain_name: str) -> str:
    """Return the fully qualified zone name Route 53 reports for a domain."""
    return f"{domain_name}."


def caller_reference(owner: str, now: float) -> str:
    return f"{CALLER_REFERENCE_PREFIX}-{owner}-{int(now)}"


class ZoneDriver:
    """Create or adopt a hosted zone, and tear it down again.

    Two reconciliations racing on the same domain can both miss the lookup
    and create a zone each: the caller reference only deduplicates retries
    of the same request. Route 53 allows several zones with one name, so
    this cannot be closed from here.
    """

    def __init__(self, dns: DnsProvider, clock: Callable[[], float] = time.time):
        self.dns = dns
        self.clock = clock

    def ensure_zone(self, domain_name: str, owner: str, known_zone_id: str = "") -> ZoneRef:
        """Return the zone for ``domain_name``, creating it only if none exists.

        Args:
            domain_name: The parked domain.
            owner: Name of the intent, used in the creation caller reference.
            known_zone_id: Zone id recorded on the intent by an earlier run.

        Raises:
            ConfigurationError: If ``known_zone_id`` names a zone of another domain.
        """
        with trace_span("ensure_zone", kind=KIND_PARKED_DOMAIN, attributes={"domain_name": domain_name}):
            if known_zone_id:
                zone = self._adopt_known(domain_name, known_zone_id)
                if zone is not None:
                    return zone

            zone = self._adopt_existing(domain_name)
            if zone is not None:
                return zone

            logger.info(f"No hosted zone found for {domain_name}, creating one", extra={"domain_name": domain_name})
            try:
                zone = self.dns.create_zone(domain_name, caller_reference(owner, self.clock()))
            except ConflictError:
                zone = self._adopt_existing(domain_name)
                if zone is None:
                    metrics.zone_operations_total.labels(operation="create", result="failed").inc()
                    raise
                return zone

            metrics.zone_operations_total.labels(operation="create", result="success").inc()
            logger.info(
                f"Created hosted zone {zone.id} for {domain_name}",
                extra={"domain_name": domain_name, "zone_id": zone.id},
            )
            return ZoneRef(id=zone.id, name=domain_name, name_servers=list(zone.name_servers))

    def _adopt_known(self, domain_name: str, zone_id: str) -> ZoneRef | None:
        try:
            zone = self.dns.get_zone(zone_id)
        except NotFoundError:
            logger.warning(
                f"Recorded hosted zone {zone_id} no longer exists, looking up by name",
                extra={"domain_name": domain_name, "zone_id": zone_id},
            )
            return None
        if zone.name != domain_name:
            # A recorded zone is only ever torn down, never replaced
            raise ConfigurationError(
                f"hosted zone {zone_id} recorded on this resource belongs to {zone.name}, "
                f"not {domain_name}; domainName is immutable"
            )
        metrics.zone_operations_total.labels(operation="adopt", result="success").inc()
        return ZoneRef(id=zone.id, name=domain_name, name_servers=list(zone.name_servers))

    def _adopt_existing(self, domain_name: str) -> ZoneRef | None:
        expected = zone_name(domain_name)
        match = next(
            (zone for zone in self.dns.list_zones_by_name(domain_name) if zone["Name"] == expected),
            None,
        )
        if match is None:
            return None

        zone = self.dns.get_zone(match["Id"])
        metrics.zone_operations_total.labels(operation="adopt", result="success").inc()
        logger.info(
            f"Found existing hosted zone {zone.id} for {domain_name}, adopting it",
            extra={"domain_name": domain_name, "zone_id": zone.id},
        )
        return ZoneRef(id=zone.id, name=domain_name, name_servers=list(zone.name_servers))

    def zone_domain(self, zone_id: str) -> str:
        """Return the domain a recorded zone serves, or "" if there is none."""
        if not zone_id:
            return ""
        try:
            return self.dns.get_zone(zone_id).name
        except NotFoundError:
            return ""

    def teardown_zone(self, zone_id: str) -> None:
        """Delete every non-apex-NS/SOA record, then the zone itself.

        An empty ``zone_id`` means the zone was never recorded; nothing to do.
        A zone that is already gone counts as deleted.
        """
        if not zone_id:
            logger.info("Zone id is empty, skipping hosted zone cleanup")
            return

        with trace_span("teardown_zone", kind=KIND_PARKED_DOMAIN, attributes={"zone_id": zone_id}):
            logger.info(f"Starting hosted zone cleanup for {zone_id}", extra={"zone_id": zone_id})
            try:
                changes = self._deletions(zone_id)
                for start in range(0, len(changes), MAX_CHANGES_PER_BATCH):
                    self.dns.change_record_sets(zone_id, changes[start:start + MAX_CHANGES_PER_BATCH])
                self.dns.delete_zone(zone_id)
            except NotFoundError:
                logger.info(f"Hosted zone {zone_id} does not exist, nothing to clean up", extra={"zone_id": zone_id})
                metrics.zone_operations_total.labels(operation="delete", result="absent").inc()
                return

        metrics.zone_operations_total.labels(operation="delete", result="success").inc()
        logger.info(
            f"Hosted zone cleanup complete for {zone_id}",
            extra={"zone_id": zone_id, "records_deleted": len(changes)},
        )

    def _deletions(self, zone_id: str) -> list[dict[str, Any]]:
        apex: str | None = None
        record_sets = []
        for page in self.dns.list_record_set_pages(zone_id):
            for record_set in page:
                if record_set["Type"] == "SOA":
                    apex = record_set["Name"]
                record_sets.append(record_set)
        return [
            {"Action": "DELETE", "ResourceRecordSet": record_set}
            for record_set in record_sets
            if not _is_apex_protected(record_set, apex)
        ]


def _is_apex_protected(record_set: dict[str, Any], apex: str | None) -> bool:
    if record_set["Type"] not in APEX_PROTECTED_RECORD_TYPES:
        return False
    # Without an SOA we cannot tell the apex apart; keep every NS.
    return apex is None or record_set["Name"] == apex
