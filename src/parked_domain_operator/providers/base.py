"""Capability interfaces for the remote systems the operator drives.

Each interface has a boto3 implementation (``providers.aws``) and an
in-memory implementation (``providers.memory``). Both raise the exceptions
from ``parked_domain_operator.errors`` so the drivers never see SDK types.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterator

from ..models import ZoneRef


class StorageProvider(ABC):
    """Object storage operations needed to host a static website."""

    def for_region(self, region: str) -> StorageProvider:
        """Return a provider whose calls go to ``region``.

        Bucket creation must be sent to the bucket's own region, so drivers
        resolve the regional provider before touching a bucket.
        """
        return self

    @abstractmethod
    def bucket_exists(self, bucket_name: str) -> bool:
        """Return True if the bucket exists and is accessible."""

    @abstractmethod
    def create_bucket(self, bucket_name: str, location_constraint: str | None = None) -> None:
        """Create a bucket, optionally pinned to a location constraint."""

    @abstractmethod
    def put_object(self, bucket_name: str, key: str, body: bytes, content_type: str) -> None:
        """Upload an object, overwriting any existing object with that key."""

    @abstractmethod
    def put_bucket_website(self, bucket_name: str, index_document: str) -> None:
        """Enable static website hosting with the given index document."""

    @abstractmethod
    def allow_public_policy(self, bucket_name: str) -> None:
        """Lift the public access block that would reject a public policy."""

    @abstractmethod
    def put_bucket_policy(self, bucket_name: str, policy: str) -> None:
        """Replace the bucket policy with the given JSON document."""

    @abstractmethod
    def list_object_pages(self, bucket_name: str) -> Iterator[list[str]]:
        """Yield the object keys of the bucket one page at a time."""

    @abstractmethod
    def delete_objects(self, bucket_name: str, keys: list[str]) -> None:
        """Delete the given keys in a single batch request."""

    @abstractmethod
    def delete_bucket(self, bucket_name: str) -> None:
        """Delete an empty bucket."""


class DnsProvider(ABC):
    """Hosted zone and record set operations."""

    @abstractmethod
    def list_zones_by_name(self, dns_name: str) -> list[dict[str, Any]]:
        """Return zones ordered by name, starting at ``dns_name``.

        Each entry carries at least ``Id`` and ``Name`` (with trailing dot).
        """

    @abstractmethod
    def get_zone(self, zone_id: str) -> ZoneRef:
        """Return the zone with its delegation set name servers."""

    @abstractmethod
    def create_zone(self, name: str, caller_reference: str) -> ZoneRef:
        """Create a public hosted zone and return it with its name servers."""

    @abstractmethod
    def list_record_set_pages(self, zone_id: str) -> Iterator[list[dict[str, Any]]]:
        """Yield the zone's resource record sets one page at a time."""

    @abstractmethod
    def change_record_sets(
        self,
        zone_id: str,
        changes: list[dict[str, Any]],
        comment: str | None = None,
    ) -> None:
        """Apply a batch of record set changes atomically."""

    @abstractmethod
    def delete_zone(self, zone_id: str) -> None:
        """Delete a zone that only holds its apex NS and SOA records."""
