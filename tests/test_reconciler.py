"""Tests for the reconciliation engine, run against the in-memory providers."""

from __future__ import annotations

import pytest

from parked_domain_operator.constants import FINALIZER
from parked_domain_operator.errors import (
    ConfigurationError,
    ConflictError,
    ParkedDomainError,
    StageError,
    TemplateNotFoundError,
    TransientError,
)
from parked_domain_operator.models import IntentKey
from parked_domain_operator.reconciler import ReconcileResult


def status_of(store, key):
    return store.objects[key].get("status", {})


def provision(engine, key):
    first = engine.reconcile(key)
    assert first.requeue
    second = engine.reconcile(key)
    assert second.success, second.error
    return second


def test_result_success_reflects_error():
    assert ReconcileResult().success
    assert ReconcileResult(requeue=True).success
    assert not ReconcileResult(error=RuntimeError("x")).success


def test_first_pass_only_registers_finalizer(engine, store, dns, storage, create_intent):
    key = create_intent()

    result = engine.reconcile(key)

    assert result.requeue
    assert result.error is None
    assert store.objects[key]["metadata"]["finalizers"] == [FINALIZER]
    assert dns.calls == []
    assert storage.calls == []


def test_provisioning_end_to_end(engine, store, dns, storage, create_intent):
    key = create_intent()

    provision(engine, key)

    status = status_of(store, key)
    assert status["status"] == "Provisioned"
    zone_id = status["zoneID"]
    assert zone_id in dns.zones
    assert len(status["nameServers"]) == 4
    assert status["nameServers"] == dns.zones[zone_id].name_servers
    assert "test.example.com" in storage.buckets
    alias = dns.zones[zone_id].record_sets[("test.example.com.", "A")]["AliasTarget"]
    assert alias["DNSName"] == "test.example.com.s3-website.eu-central-1.amazonaws.com"
    assert alias["HostedZoneId"] == "Z21DNDUVLTQW6Q"


def test_spec_region_and_template_are_used(engine, storage, create_intent):
    key = create_intent(region="us-east-1", templateName="minimal.html")

    provision(engine, key)

    bucket = storage.buckets["test.example.com"]
    assert bucket.location_constraint is None
    assert bucket.objects["index.html"].body == b"test.example.com"


def test_converged_intent_creates_nothing_new(engine, store, dns, storage, create_intent):
    key = create_intent()
    provision(engine, key)
    zone_id = status_of(store, key)["zoneID"]
    for recorder in (store, dns, storage):
        recorder.reset_calls()

    result = engine.reconcile(key)

    assert result.success
    assert dns.mutations == [("change_record_sets", (zone_id, ("UPSERT",)))]
    assert dns.calls_to("list_zones_by_name") == []
    assert storage.calls_to("create_bucket") == []
    assert store.mutations == []
    assert len(dns.zones) == 1


def test_existing_zone_is_adopted(engine, store, dns, create_intent):
    existing = dns.add_zone("test.example.com")
    key = create_intent()

    provision(engine, key)

    assert status_of(store, key)["zoneID"] == existing.id
    assert dns.calls_to("create_zone") == []


def test_missing_intent_is_a_no_op(engine, store, dns, storage):
    result = engine.reconcile(IntentKey("default", "missing"))

    assert result == ReconcileResult()
    assert store.mutations == []
    assert dns.calls == []
    assert storage.calls == []


def test_store_read_failure_is_returned(engine, store, create_intent):
    key = create_intent()
    store.fail_next("get", TransientError("apiserver unavailable"))

    result = engine.reconcile(key)

    assert isinstance(result.error, TransientError)


def test_finalizer_conflict_is_returned(engine, store, dns, create_intent):
    key = create_intent()
    store.fail_next("update", ConflictError("modified concurrently"))

    result = engine.reconcile(key)

    assert isinstance(result.error, ConflictError)
    assert not result.requeue
    assert store.objects[key]["metadata"]["finalizers"] == []
    assert dns.calls == []


def test_missing_domain_name_fails_validation(engine, store, dns, create_intent):
    key = create_intent(domain_name="")
    engine.reconcile(key)

    result = engine.reconcile(key)

    assert isinstance(result.error, StageError)
    assert result.error.stage == "Validation"
    assert isinstance(result.error.cause, ConfigurationError)
    assert status_of(store, key) == {"status": "Error: Validation"}
    assert dns.calls == []


def test_zone_failure_stops_before_bucket(engine, store, dns, storage, create_intent):
    key = create_intent()
    engine.reconcile(key)
    dns.fail_next("create_zone", ParkedDomainError("limit reached", "TooManyHostedZones"))

    result = engine.reconcile(key)

    assert result.error.stage == "Route53 Zone"
    assert status_of(store, key)["status"] == "Error: Route53 Zone"
    assert storage.calls == []


def test_bucket_failure_reports_stage(engine, store, create_intent):
    key = create_intent(templateName="missing.html")
    engine.reconcile(key)

    result = engine.reconcile(key)

    assert result.error.stage == "S3 Bucket"
    assert isinstance(result.error.cause, TemplateNotFoundError)
    assert status_of(store, key)["status"] == "Error: S3 Bucket"


def test_record_failure_reports_stage(engine, store, dns, create_intent):
    key = create_intent(region="ap-south-1")
    engine.reconcile(key)

    result = engine.reconcile(key)

    assert result.error.stage == "Route53 A Record"
    assert isinstance(result.error.cause, ConfigurationError)
    assert status_of(store, key)["status"] == "Error: Route53 A Record"
    zone = next(iter(dns.zones.values()))
    assert ("test.example.com.", "A") not in zone.record_sets


def test_failure_keeps_recorded_zone(engine, store, storage, create_intent):
    key = create_intent()
    provision(engine, key)
    provisioned = dict(status_of(store, key))
    storage.fail_next("put_bucket_policy", TransientError("throttled", "SlowDown"))

    result = engine.reconcile(key)

    assert result.error.stage == "S3 Bucket"
    status = status_of(store, key)
    assert status["status"] == "Error: S3 Bucket"
    assert status["zoneID"] == provisioned["zoneID"]
    assert status["nameServers"] == provisioned["nameServers"]


def test_failed_stage_is_retried_to_success(engine, store, storage, create_intent):
    key = create_intent()
    engine.reconcile(key)
    storage.fail_next("put_bucket_website", TransientError("throttled", "SlowDown"))
    assert engine.reconcile(key).error is not None

    result = engine.reconcile(key)

    assert result.success
    assert status_of(store, key)["status"] == "Provisioned"
    assert len(storage.calls_to("create_bucket")) == 1


def test_status_write_failure_is_returned(engine, store, create_intent):
    key = create_intent()
    engine.reconcile(key)
    store.fail_next("patch_status", TransientError("apiserver unavailable"))

    result = engine.reconcile(key)

    assert isinstance(result.error, TransientError)
    assert "status" not in store.objects[key]


def test_stage_error_survives_status_write_failure(engine, store, dns, create_intent):
    key = create_intent()
    engine.reconcile(key)
    dns.fail_next("create_zone", ParkedDomainError("limit reached", "TooManyHostedZones"))
    store.fail_next("patch_status", TransientError("apiserver unavailable"))

    result = engine.reconcile(key)

    assert isinstance(result.error, StageError)
    assert result.error.stage == "Route53 Zone"


def test_deletion_tears_down_then_releases(engine, store, dns, storage, create_intent):
    key = create_intent()
    provision(engine, key)
    store.request_deletion(key)

    result = engine.reconcile(key)

    assert result.success
    assert key not in store.objects
    assert storage.buckets == {}
    assert dns.zones == {}


def test_domain_name_edit_fails_validation_and_keeps_zone(engine, store, dns, storage, create_intent):
    key = create_intent()
    provision(engine, key)
    zone_id = status_of(store, key)["zoneID"]
    store.objects[key]["spec"]["domainName"] = "other.example.com"

    result = engine.reconcile(key)

    assert isinstance(result.error, StageError)
    assert result.error.stage == "Validation"
    assert isinstance(result.error.cause, ConfigurationError)
    assert status_of(store, key)["zoneID"] == zone_id
    assert status_of(store, key)["status"] == "Error: Validation"
    assert list(dns.zones) == [zone_id]
    assert list(storage.buckets) == ["test.example.com"]


def test_deletion_uses_the_bucket_region(engine, store, storage, create_intent):
    key = create_intent(region="us-west-2")
    provision(engine, key)
    storage.regions.clear()
    store.request_deletion(key)

    assert engine.reconcile(key).success
    assert storage.regions == ["us-west-2"]
    assert storage.buckets == {}


def test_deletion_after_domain_name_edit_removes_original_resources(engine, store, dns, storage, create_intent):
    key = create_intent()
    provision(engine, key)
    store.objects[key]["spec"]["domainName"] = "other.example.com"
    engine.reconcile(key)
    store.request_deletion(key)

    result = engine.reconcile(key)

    assert result.success, result.error
    assert key not in store.objects
    assert dns.zones == {}
    assert storage.buckets == {}



@pytest.mark.parametrize(
    "recorder,operation",
    [
        ("storage", "delete_bucket"),
        ("storage", "delete_objects"),
        ("dns", "change_record_sets"),
        ("dns", "delete_zone"),
    ],
)
def test_teardown_failure_keeps_finalizer(engine, store, dns, storage, create_intent, recorder, operation):
    key = create_intent()
    provision(engine, key)
    store.request_deletion(key)
    {"storage": storage, "dns": dns}[recorder].fail_next(operation, TransientError("throttled", "Throttling"))

    result = engine.reconcile(key)

    assert result.error.stage == "Cleanup"
    assert store.objects[key]["metadata"]["finalizers"] == [FINALIZER]
    assert status_of(store, key)["status"] == "Error: Cleanup"

    retried = engine.reconcile(key)

    assert retried.success
    assert key not in store.objects
    assert storage.buckets == {}
    assert dns.zones == {}


def test_deletion_of_never_provisioned_intent(engine, store, dns, storage, create_intent):
    key = create_intent(finalized=True)
    store.request_deletion(key)

    result = engine.reconcile(key)

    assert result.success
    assert key not in store.objects
    assert dns.calls == []
    assert storage.calls_to("delete_bucket") == []


def test_deletion_with_resources_already_gone(engine, store, dns, storage, create_intent):
    key = create_intent()
    provision(engine, key)
    storage.buckets.clear()
    dns.zones.clear()
    store.request_deletion(key)

    result = engine.reconcile(key)

    assert result.success
    assert key not in store.objects


def test_finalizer_release_conflict_is_returned(engine, store, create_intent):
    key = create_intent()
    provision(engine, key)
    store.request_deletion(key)
    store.fail_next("update", ConflictError("modified concurrently"))

    result = engine.reconcile(key)

    assert isinstance(result.error, ConflictError)
    assert key in store.objects

    assert engine.reconcile(key).success
    assert key not in store.objects


def test_deletion_without_our_finalizer_is_ignored(engine, store, dns, storage, create_intent):
    key = create_intent()
    store.objects[key]["metadata"]["finalizers"] = ["other.example.com/finalizer"]
    store.request_deletion(key)

    result = engine.reconcile(key)

    assert result == ReconcileResult()
    assert key in store.objects
    assert dns.calls == []
    assert storage.calls == []
