"""boto3-backed implementations of the storage and DNS providers."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Iterator

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .. import metrics
from ..constants import HOSTED_ZONE_ID_PREFIX
from ..errors import NotFoundError, ParkedDomainError
from ..models import ZoneRef
from ..utils.errors import translate_client_error
from .base import DnsProvider, StorageProvider

# Retries are driven by re-running the reconciliation, not by the SDK.
CLIENT_CONFIG = Config(retries={"total_max_attempts": 1, "mode": "standard"})


def strip_zone_id(zone_id: str) -> str:
    """Strip the "/hostedzone/" prefix Route 53 puts on zone ids."""
    if zone_id.startswith(HOSTED_ZONE_ID_PREFIX):
        return zone_id[len(HOSTED_ZONE_ID_PREFIX):]
    return zone_id


def _call(api_type: str, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
    """Invoke an SDK method, recording metrics and translating errors."""
    start_time = time.time()
    try:
        result = fn(**kwargs)
        metrics.api_call_total.labels(api_type=api_type, operation=operation, result="success").inc()
        return result
    except (ClientError, BotoCoreError) as e:
        metrics.api_call_total.labels(api_type=api_type, operation=operation, result="error").inc()
        raise translate_client_error(e, operation) from e
    finally:
        duration = time.time() - start_time
        metrics.api_call_duration_seconds.labels(api_type=api_type, operation=operation).observe(duration)


class AwsStorageProvider(StorageProvider):
    """S3 implementation of the storage provider.

    ``client`` serves the default region. With a ``client_factory`` the
    provider also hands out one cached provider per bucket region through
    ``for_region``.
    """

    def __init__(self, client: Any, client_factory: Callable[[str], Any] | None = None):
        self.client = client
        self._client_factory = client_factory
        self._regional: dict[str, AwsStorageProvider] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        region: str,
        endpoint_url: str | None = None,
        session: boto3.session.Session | None = None,
    ) -> AwsStorageProvider:
        session = session or boto3.session.Session()

        def client_factory(client_region: str) -> Any:
            return session.client("s3", region_name=client_region, endpoint_url=endpoint_url, config=CLIENT_CONFIG)

        provider = cls(client_factory(region), client_factory=client_factory)
        provider._regional[region] = provider
        return provider

    def for_region(self, region: str) -> AwsStorageProvider:
        if self._client_factory is None or not region:
            return self
        # boto3 sessions are not thread-safe; create clients under the lock
        with self._lock:
            provider = self._regional.get(region)
            if provider is None:
                provider = AwsStorageProvider(self._client_factory(region))
                self._regional[region] = provider
            return provider

    def bucket_exists(self, bucket_name: str) -> bool:
        try:
            _call("s3", "head_bucket", self.client.head_bucket, Bucket=bucket_name)
        except NotFoundError:
            return False
        return True

    def create_bucket(self, bucket_name: str, location_constraint: str | None = None) -> None:
        kwargs: dict[str, Any] = {"Bucket": bucket_name}
        if location_constraint:
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": location_constraint}
        _call("s3", "create_bucket", self.client.create_bucket, **kwargs)

    def put_object(self, bucket_name: str, key: str, body: bytes, content_type: str) -> None:
        _call(
            "s3",
            "put_object",
            self.client.put_object,
            Bucket=bucket_name,
            Key=key,
            Body=body,
            ContentType=content_type,
        )

    def put_bucket_website(self, bucket_name: str, index_document: str) -> None:
        _call(
            "s3",
            "put_bucket_website",
            self.client.put_bucket_website,
            Bucket=bucket_name,
            WebsiteConfiguration={"IndexDocument": {"Suffix": index_document}},
        )

    def allow_public_policy(self, bucket_name: str) -> None:
        _call(
            "s3",
            "put_public_access_block",
            self.client.put_public_access_block,
            Bucket=bucket_name,
            PublicAccessBlockConfiguration={
                "BlockPublicAcls": True,
                "IgnorePublicAcls": True,
                "BlockPublicPolicy": False,
                "RestrictPublicBuckets": False,
            },
        )

    def put_bucket_policy(self, bucket_name: str, policy: str) -> None:
        _call("s3", "put_bucket_policy", self.client.put_bucket_policy, Bucket=bucket_name, Policy=policy)

    def list_object_pages(self, bucket_name: str) -> Iterator[list[str]]:
        kwargs: dict[str, Any] = {"Bucket": bucket_name}
        while True:
            page = _call("s3", "list_objects_v2", self.client.list_objects_v2, **kwargs)
            keys = [obj["Key"] for obj in page.get("Contents", [])]
            if keys:
                yield keys
            if not page.get("IsTruncated"):
                return
            kwargs["ContinuationToken"] = page["NextContinuationToken"]

    def delete_objects(self, bucket_name: str, keys: list[str]) -> None:
        response = _call(
            "s3",
            "delete_objects",
            self.client.delete_objects,
            Bucket=bucket_name,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
        )
        errors = response.get("Errors", [])
        if errors:
            first = errors[0]
            raise ParkedDomainError(
                f"delete_objects failed for {len(errors)} keys, first {first.get('Key')}: {first.get('Code')}",
                first.get("Code", ""),
            )

    def delete_bucket(self, bucket_name: str) -> None:
        _call("s3", "delete_bucket", self.client.delete_bucket, Bucket=bucket_name)


class AwsDnsProvider(DnsProvider):
    """Route 53 implementation of the DNS provider."""

    def __init__(self, client: Any):
        self.client = client

    @classmethod
    def from_config(
        cls,
        region: str,
        endpoint_url: str | None = None,
        session: boto3.session.Session | None = None,
    ) -> AwsDnsProvider:
        session = session or boto3.session.Session()
        return cls(session.client("route53", region_name=region, endpoint_url=endpoint_url, config=CLIENT_CONFIG))

    def list_zones_by_name(self, dns_name: str) -> list[dict[str, Any]]:
        response = _call(
            "route53",
            "list_hosted_zones_by_name",
            self.client.list_hosted_zones_by_name,
            DNSName=dns_name,
        )
        return [
            {"Id": strip_zone_id(zone["Id"]), "Name": zone["Name"]}
            for zone in response.get("HostedZones", [])
        ]

    def get_zone(self, zone_id: str) -> ZoneRef:
        response = _call("route53", "get_hosted_zone", self.client.get_hosted_zone, Id=zone_id)
        return ZoneRef(
            id=strip_zone_id(response["HostedZone"]["Id"]),
            name=response["HostedZone"]["Name"].rstrip("."),
            name_servers=list(response.get("DelegationSet", {}).get("NameServers", [])),
        )

    def create_zone(self, name: str, caller_reference: str) -> ZoneRef:
        response = _call(
            "route53",
            "create_hosted_zone",
            self.client.create_hosted_zone,
            Name=name,
            CallerReference=caller_reference,
        )
        return ZoneRef(
            id=strip_zone_id(response["HostedZone"]["Id"]),
            name=response["HostedZone"]["Name"].rstrip("."),
            name_servers=list(response.get("DelegationSet", {}).get("NameServers", [])),
        )

    def list_record_set_pages(self, zone_id: str) -> Iterator[list[dict[str, Any]]]:
        kwargs: dict[str, Any] = {"HostedZoneId": zone_id}
        while True:
            page = _call(
                "route53",
                "list_resource_record_sets",
                self.client.list_resource_record_sets,
                **kwargs,
            )
            yield list(page.get("ResourceRecordSets", []))
            if not page.get("IsTruncated"):
                return
            kwargs["StartRecordName"] = page["NextRecordName"]
            kwargs["StartRecordType"] = page["NextRecordType"]
            if page.get("NextRecordIdentifier"):
                kwargs["StartRecordIdentifier"] = page["NextRecordIdentifier"]
            else:
                kwargs.pop("StartRecordIdentifier", None)

    def change_record_sets(
        self,
        zone_id: str,
        changes: list[dict[str, Any]],
        comment: str | None = None,
    ) -> None:
        change_batch: dict[str, Any] = {"Changes": changes}
        if comment:
            change_batch["Comment"] = comment
        _call(
            "route53",
            "change_resource_record_sets",
            self.client.change_resource_record_sets,
            HostedZoneId=zone_id,
            ChangeBatch=change_batch,
        )

    def delete_zone(self, zone_id: str) -> None:
        _call("route53", "delete_hosted_zone", self.client.delete_hosted_zone, Id=zone_id)
