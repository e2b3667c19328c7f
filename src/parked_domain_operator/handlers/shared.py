"""Shared utilities for handlers."""

from __future__ import annotations

from kubernetes import client, config

from ..config import OperatorConfig
from ..drivers import BucketDriver, RecordDriver, ZoneDriver
from ..providers.aws import AwsDnsProvider, AwsStorageProvider
from ..reconciler import ReconciliationEngine
from ..store import KubernetesIntentStore
from ..templates import ConfigMapTemplateResolver


def load_k8s_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client.

    Returns:
        CustomObjectsApi instance
    """
    load_k8s_config()
    return client.CustomObjectsApi()


def get_core_client() -> client.CoreV1Api:
    """Get Kubernetes CoreV1Api client (ConfigMaps).

    Returns:
        CoreV1Api instance
    """
    load_k8s_config()
    return client.CoreV1Api()


def build_engine(operator_config: OperatorConfig) -> ReconciliationEngine:
    """Wire the engine to the real Kubernetes and AWS clients.

    Called once at operator startup; the clients are shared by every
    reconciliation afterwards.
    """
    dns = AwsDnsProvider.from_config(operator_config.aws_region, operator_config.route53_endpoint_url)
    storage = AwsStorageProvider.from_config(operator_config.aws_region, operator_config.s3_endpoint_url)
    templates = ConfigMapTemplateResolver(get_core_client())

    return ReconciliationEngine(
        store=KubernetesIntentStore(get_k8s_client()),
        zones=ZoneDriver(dns),
        buckets=BucketDriver(storage, templates),
        records=RecordDriver(dns),
        config=operator_config,
    )
