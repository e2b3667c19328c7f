"""Record driver: the apex alias record pointing at the website bucket."""

from __future__ import annotations

import logging

from ..constants import KIND_PARKED_DOMAIN, RECORD_CHANGE_COMMENT, S3_WEBSITE_HOSTED_ZONE_IDS
from ..errors import ConfigurationError
from ..models import RecordRef
from ..providers.base import DnsProvider
from ..tracing import trace_span

logger = logging.getLogger(__name__)


def alias_zone_id(region: str) -> str:
    """Return the hosted zone id of the S3 website endpoint in ``region``.

    Raises:
        ConfigurationError: If the region is not in the alias table.
    """
    try:
        return S3_WEBSITE_HOSTED_ZONE_IDS[region]
    except KeyError:
        raise ConfigurationError(f"unsupported S3 website region for alias record: {region}") from None


class RecordDriver:
    """Upsert the alias A record; it is deleted together with its zone."""

    def __init__(self, dns: DnsProvider):
        self.dns = dns

    def upsert_alias_record(self, zone_id: str, domain_name: str, alias_target: str, region: str) -> RecordRef:
        record = RecordRef(name=domain_name, alias_target=alias_target, alias_zone_id=alias_zone_id(region))

        with trace_span("upsert_alias_record", kind=KIND_PARKED_DOMAIN, attributes={"domain_name": domain_name}):
            self.dns.change_record_sets(
                zone_id,
                [
                    {
                        "Action": "UPSERT",
                        "ResourceRecordSet": {
                            "Name": record.name,
                            "Type": "A",
                            "AliasTarget": {
                                "HostedZoneId": record.alias_zone_id,
                                "DNSName": record.alias_target,
                                "EvaluateTargetHealth": False,
                            },
                        },
                    }
                ],
                comment=RECORD_CHANGE_COMMENT,
            )

        logger.info(
            f"Reconciled alias record for {domain_name}",
            extra={"domain_name": domain_name, "zone_id": zone_id, "alias_target": alias_target},
        )
        return record
