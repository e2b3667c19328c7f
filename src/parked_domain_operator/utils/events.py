"""Kubernetes events for ParkedDomain resources."""

from __future__ import annotations

from typing import Any

import kopf


def emit_provisioned(body: dict[str, Any], domain_name: str) -> None:
    kopf.info(body, reason="Provisioned", message=f"Domain {domain_name} is parked")


def emit_finalizer_registered(body: dict[str, Any]) -> None:
    kopf.info(body, reason="FinalizerAdded", message="Finalizer registered, provisioning on next pass")


def emit_cleanup_completed(body: dict[str, Any], domain_name: str) -> None:
    kopf.info(body, reason="CleanupCompleted", message=f"Bucket and hosted zone for {domain_name} removed")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    kopf.warn(body, reason="ReconcileFailed", message=message)


def emit_cleanup_failed(body: dict[str, Any], message: str) -> None:
    kopf.warn(body, reason="CleanupFailed", message=message)
