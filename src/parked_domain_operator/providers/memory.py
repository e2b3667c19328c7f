"""In-memory providers and intent store with the same contract as the real ones.

They keep the remote state in dictionaries, record every call, and can be
told to fail a given operation, which is what the engine and driver tests
are built on.
"""

from __future__ import annotations

import copy
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator

from ..errors import ConflictError, NotFoundError, ParkedDomainError
from ..models import Intent, IntentKey, ZoneRef
from ..store import IntentStore
from .base import DnsProvider, StorageProvider


class CallRecorder:
    """Call log and failure injection shared by the fakes."""

    mutating_operations: frozenset[str] = frozenset()

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._failures: dict[str, list[Exception]] = {}
        self._lock = threading.RLock()

    def fail_next(self, operation: str, error: Exception, times: int = 1) -> None:
        """Make the next ``times`` calls of ``operation`` raise ``error``."""
        self._failures.setdefault(operation, []).extend([error] * times)

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    def calls_to(self, operation: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == operation]

    @property
    def mutations(self) -> list[tuple[str, tuple[Any, ...]]]:
        return [(name, args) for name, args in self.calls if name in self.mutating_operations]

    def reset_calls(self) -> None:
        self.calls.clear()


@dataclass
class FakeObject:
    body: bytes
    content_type: str


@dataclass
class FakeBucket:
    location_constraint: str | None = None
    objects: dict[str, FakeObject] = field(default_factory=dict)
    index_document: str | None = None
    public_access_blocked: bool = True
    policy: str | None = None


class InMemoryStorageProvider(CallRecorder, StorageProvider):
    """Object storage kept in a dictionary of buckets."""

    mutating_operations = frozenset({
        "create_bucket",
        "put_object",
        "put_bucket_website",
        "allow_public_policy",
        "put_bucket_policy",
        "delete_objects",
        "delete_bucket",
    })

    def __init__(self, page_size: int = 1000) -> None:
        super().__init__()
        self.buckets: dict[str, FakeBucket] = {}
        self.page_size = page_size
        self.regions: list[str] = []

    def for_region(self, region: str) -> InMemoryStorageProvider:
        self.regions.append(region)
        return self

    def _bucket(self, bucket_name: str) -> FakeBucket:
        bucket = self.buckets.get(bucket_name)
        if bucket is None:
            raise NotFoundError(f"bucket {bucket_name} does not exist", "NoSuchBucket")
        return bucket

    def bucket_exists(self, bucket_name: str) -> bool:
        with self._lock:
            self._record("bucket_exists", bucket_name)
            return bucket_name in self.buckets

    def create_bucket(self, bucket_name: str, location_constraint: str | None = None) -> None:
        with self._lock:
            self._record("create_bucket", bucket_name, location_constraint)
            if bucket_name in self.buckets:
                raise ConflictError(f"bucket {bucket_name} already exists", "BucketAlreadyOwnedByYou")
            self.buckets[bucket_name] = FakeBucket(location_constraint=location_constraint)

    def put_object(self, bucket_name: str, key: str, body: bytes, content_type: str) -> None:
        with self._lock:
            self._record("put_object", bucket_name, key)
            self._bucket(bucket_name).objects[key] = FakeObject(body=body, content_type=content_type)

    def put_bucket_website(self, bucket_name: str, index_document: str) -> None:
        with self._lock:
            self._record("put_bucket_website", bucket_name, index_document)
            self._bucket(bucket_name).index_document = index_document

    def allow_public_policy(self, bucket_name: str) -> None:
        with self._lock:
            self._record("allow_public_policy", bucket_name)
            self._bucket(bucket_name).public_access_blocked = False

    def put_bucket_policy(self, bucket_name: str, policy: str) -> None:
        with self._lock:
            self._record("put_bucket_policy", bucket_name)
            bucket = self._bucket(bucket_name)
            if bucket.public_access_blocked:
                raise ParkedDomainError(f"public policies are blocked on {bucket_name}", "AccessDenied")
            bucket.policy = policy

    def list_object_pages(self, bucket_name: str) -> Iterator[list[str]]:
        with self._lock:
            self._record("list_objects", bucket_name)
            keys = sorted(self._bucket(bucket_name).objects)
        for start in range(0, len(keys), self.page_size):
            yield keys[start:start + self.page_size]

    def delete_objects(self, bucket_name: str, keys: list[str]) -> None:
        with self._lock:
            self._record("delete_objects", bucket_name, tuple(keys))
            bucket = self._bucket(bucket_name)
            for key in keys:
                bucket.objects.pop(key, None)

    def delete_bucket(self, bucket_name: str) -> None:
        with self._lock:
            self._record("delete_bucket", bucket_name)
            bucket = self._bucket(bucket_name)
            if bucket.objects:
                raise ConflictError(f"bucket {bucket_name} is not empty", "BucketNotEmpty")
            del self.buckets[bucket_name]


@dataclass
class FakeZone:
    id: str
    name: str
    caller_reference: str
    name_servers: list[str]
    record_sets: dict[tuple[str, str], dict[str, Any]] = field(default_factory=dict)


def _fqdn(name: str) -> str:
    return name if name.endswith(".") else f"{name}."


class InMemoryDnsProvider(CallRecorder, DnsProvider):
    """Hosted zones kept in a dictionary keyed by zone id."""

    mutating_operations = frozenset({
        "create_zone",
        "change_record_sets",
        "delete_zone",
    })

    def __init__(self, page_size: int = 100) -> None:
        super().__init__()
        self.zones: dict[str, FakeZone] = {}
        self.page_size = page_size
        self._ids = itertools.count(1)

    def add_zone(self, name: str, caller_reference: str = "preexisting") -> FakeZone:
        """Seed a zone, as if it had been created outside the operator."""
        number = next(self._ids)
        zone_name = _fqdn(name)
        zone = FakeZone(
            id=f"Z{number:013d}",
            name=zone_name,
            caller_reference=caller_reference,
            name_servers=[f"ns-{number}-{i}.awsdns.test" for i in range(1, 5)],
        )
        zone.record_sets[(zone_name, "SOA")] = {
            "Name": zone_name,
            "Type": "SOA",
            "TTL": 900,
            "ResourceRecords": [{"Value": f"{zone.name_servers[0]}. hostmaster.{zone_name} 1 7200 900 1209600 86400"}],
        }
        zone.record_sets[(zone_name, "NS")] = {
            "Name": zone_name,
            "Type": "NS",
            "TTL": 172800,
            "ResourceRecords": [{"Value": f"{ns}."} for ns in zone.name_servers],
        }
        self.zones[zone.id] = zone
        return zone

    def _zone(self, zone_id: str) -> FakeZone:
        zone = self.zones.get(zone_id)
        if zone is None:
            raise NotFoundError(f"hosted zone {zone_id} does not exist", "NoSuchHostedZone")
        return zone

    def list_zones_by_name(self, dns_name: str) -> list[dict[str, Any]]:
        with self._lock:
            self._record("list_zones_by_name", dns_name)
            start = _fqdn(dns_name)
            zones = sorted(self.zones.values(), key=lambda z: (z.name, z.id))
            return [{"Id": z.id, "Name": z.name} for z in zones if z.name >= start][: self.page_size]

    def get_zone(self, zone_id: str) -> ZoneRef:
        with self._lock:
            self._record("get_zone", zone_id)
            zone = self._zone(zone_id)
            return ZoneRef(id=zone.id, name=zone.name.rstrip("."), name_servers=list(zone.name_servers))

    def create_zone(self, name: str, caller_reference: str) -> ZoneRef:
        with self._lock:
            self._record("create_zone", name, caller_reference)
            if any(z.caller_reference == caller_reference for z in self.zones.values()):
                raise ConflictError(f"caller reference {caller_reference} already used", "HostedZoneAlreadyExists")
            zone = self.add_zone(name, caller_reference)
            return ZoneRef(id=zone.id, name=zone.name.rstrip("."), name_servers=list(zone.name_servers))

    def list_record_set_pages(self, zone_id: str) -> Iterator[list[dict[str, Any]]]:
        with self._lock:
            self._record("list_record_sets", zone_id)
            record_sets = [dict(rs) for _, rs in sorted(self._zone(zone_id).record_sets.items())]
        for start in range(0, max(len(record_sets), 1), self.page_size):
            yield record_sets[start:start + self.page_size]

    def change_record_sets(
        self,
        zone_id: str,
        changes: list[dict[str, Any]],
        comment: str | None = None,
    ) -> None:
        with self._lock:
            self._record("change_record_sets", zone_id, tuple(c["Action"] for c in changes))
            zone = self._zone(zone_id)
            staged = dict(zone.record_sets)
            for change in changes:
                record_set = dict(change["ResourceRecordSet"])
                record_set["Name"] = _fqdn(record_set["Name"])
                key = (record_set["Name"], record_set["Type"])
                action = change["Action"]
                if action == "UPSERT":
                    staged[key] = record_set
                elif action == "CREATE":
                    if key in staged:
                        raise ParkedDomainError(f"record {key} already exists", "InvalidChangeBatch")
                    staged[key] = record_set
                elif action == "DELETE":
                    if staged.get(key) != record_set:
                        raise ParkedDomainError(f"record {key} not found", "InvalidChangeBatch")
                    if key[0] == zone.name and key[1] in ("NS", "SOA"):
                        raise ParkedDomainError(f"cannot delete apex {key[1]}", "InvalidChangeBatch")
                    del staged[key]
                else:
                    raise ParkedDomainError(f"unknown action {action}", "InvalidInput")
            zone.record_sets = staged

    def delete_zone(self, zone_id: str) -> None:
        with self._lock:
            self._record("delete_zone", zone_id)
            zone = self._zone(zone_id)
            leftovers = [
                key for key in zone.record_sets
                if not (key[0] == zone.name and key[1] in ("NS", "SOA"))
            ]
            if leftovers:
                raise ConflictError(f"hosted zone {zone_id} is not empty", "HostedZoneNotEmpty")
            del self.zones[zone_id]


class InMemoryIntentStore(CallRecorder, IntentStore):
    """Intents kept in a dictionary, with API-server-like semantics.

    Every write bumps ``resourceVersion``; an intent marked for deletion is
    dropped as soon as its last finalizer is removed.
    """

    mutating_operations = frozenset({"update", "patch_status"})

    def __init__(self) -> None:
        super().__init__()
        self.objects: dict[IntentKey, dict[str, Any]] = {}
        self._versions = itertools.count(1)
        self._store_lock = threading.Lock()

    def create(self, body: dict[str, Any]) -> IntentKey:
        body = copy.deepcopy(body)
        meta = body.setdefault("metadata", {})
        meta.setdefault("namespace", "default")
        meta.setdefault("finalizers", [])
        meta["resourceVersion"] = str(next(self._versions))
        key = IntentKey(meta["namespace"], meta["name"])
        with self._store_lock:
            self.objects[key] = body
        return key

    def request_deletion(self, key: IntentKey) -> None:
        """Mark the intent for deletion, or drop it if nothing holds it."""
        with self._store_lock:
            body = self.objects.get(key)
            if body is None:
                raise NotFoundError(f"{key} not found")
            meta = body["metadata"]
            if not meta.get("finalizers"):
                del self.objects[key]
                return
            meta.setdefault("deletionTimestamp", datetime.now(timezone.utc).isoformat())
            meta["resourceVersion"] = str(next(self._versions))

    def get(self, key: IntentKey) -> Intent:
        self._record("get", key)
        with self._store_lock:
            body = self.objects.get(key)
            if body is None:
                raise NotFoundError(f"{key} not found")
            return Intent.from_body(body)

    def update(self, intent: Intent) -> Intent:
        self._record("update", intent.key)
        with self._store_lock:
            current = self.objects.get(intent.key)
            if current is None:
                raise NotFoundError(f"{intent.key} not found")
            if current["metadata"]["resourceVersion"] != intent.resource_version:
                raise ConflictError(
                    f"{intent.key} was modified (have {intent.resource_version}, "
                    f"stored {current['metadata']['resourceVersion']})"
                )
            meta = current["metadata"]
            meta["finalizers"] = list(intent.finalizers)
            meta["resourceVersion"] = str(next(self._versions))
            if meta.get("deletionTimestamp") and not meta["finalizers"]:
                del self.objects[intent.key]
            return Intent.from_body(current)

    def patch_status(self, key: IntentKey, status: dict[str, Any]) -> None:
        self._record("patch_status", key, tuple(sorted(status)))
        with self._store_lock:
            current = self.objects.get(key)
            if current is None:
                raise NotFoundError(f"{key} not found")
            current.setdefault("status", {}).update(copy.deepcopy(status))
            current["metadata"]["resourceVersion"] = str(next(self._versions))
