"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from parked_domain_operator.config import OperatorConfig
from parked_domain_operator.constants import FINALIZER
from parked_domain_operator.drivers import BucketDriver, RecordDriver, ZoneDriver
from parked_domain_operator.models import IntentKey, TemplateRef
from parked_domain_operator.providers.memory import (
    InMemoryDnsProvider,
    InMemoryIntentStore,
    InMemoryStorageProvider,
)
from parked_domain_operator.reconciler import ReconciliationEngine
from parked_domain_operator.templates import StaticTemplateResolver

TEMPLATE_COLLECTION = "default/parking-templates"
DEFAULT_TEMPLATE = "<html><body><h1>{{DOMAIN_NAME}} is parked</h1></body></html>"
FIXED_NOW = 1_700_000_000.0


@pytest.fixture
def storage() -> InMemoryStorageProvider:
    return InMemoryStorageProvider()


@pytest.fixture
def dns() -> InMemoryDnsProvider:
    return InMemoryDnsProvider()


@pytest.fixture
def templates() -> StaticTemplateResolver:
    return StaticTemplateResolver({
        TEMPLATE_COLLECTION: {
            "default.html": DEFAULT_TEMPLATE,
            "minimal.html": "{{DOMAIN_NAME}}",
        },
    })


@pytest.fixture
def template_ref() -> TemplateRef:
    return TemplateRef(collection=TEMPLATE_COLLECTION, key="default.html")


@pytest.fixture
def bucket_driver(storage: InMemoryStorageProvider, templates: StaticTemplateResolver) -> BucketDriver:
    return BucketDriver(storage, templates)


@pytest.fixture
def zone_driver(dns: InMemoryDnsProvider) -> ZoneDriver:
    return ZoneDriver(dns, clock=lambda: FIXED_NOW)


@pytest.fixture
def record_driver(dns: InMemoryDnsProvider) -> RecordDriver:
    return RecordDriver(dns)


@pytest.fixture
def store() -> InMemoryIntentStore:
    return InMemoryIntentStore()


@pytest.fixture
def operator_config() -> OperatorConfig:
    return OperatorConfig(template_configmap_name="parking-templates")


@pytest.fixture
def engine(
    store: InMemoryIntentStore,
    zone_driver: ZoneDriver,
    bucket_driver: BucketDriver,
    record_driver: RecordDriver,
    operator_config: OperatorConfig,
) -> ReconciliationEngine:
    return ReconciliationEngine(store, zone_driver, bucket_driver, record_driver, operator_config)


def parked_domain_body(
    name: str = "test-domain",
    domain_name: str = "test.example.com",
    namespace: str = "default",
    **spec: Any,
) -> dict[str, Any]:
    return {
        "apiVersion": "parking.minibaev.eu/v1alpha1",
        "kind": "ParkedDomain",
        "metadata": {"name": name, "namespace": namespace, "uid": f"uid-{name}"},
        "spec": {"domainName": domain_name, **spec},
    }


@pytest.fixture
def create_intent(store: InMemoryIntentStore) -> Callable[..., IntentKey]:
    """Create a ParkedDomain in the store; pass finalized=True to pre-register the finalizer."""

    def _create(finalized: bool = False, **kwargs: Any) -> IntentKey:
        body = parked_domain_body(**kwargs)
        if finalized:
            body["metadata"]["finalizers"] = [FINALIZER]
        return store.create(body)

    return _create
