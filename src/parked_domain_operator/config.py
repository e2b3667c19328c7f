"""Operator configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    value = env.get(key, "")
    return int(value) if value else default


@dataclass(frozen=True)
class OperatorConfig:
    """Settings shared by the kopf handlers and the engine factory."""

    template_configmap_name: str = ""
    template_configmap_namespace: str = ""
    aws_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    route53_endpoint_url: str | None = None
    metrics_port: int = 8080
    log_level: str = "INFO"
    retry_delay_seconds: int = 30
    resync_interval_seconds: int = 300

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> OperatorConfig:
        env = os.environ if env is None else env
        return cls(
            template_configmap_name=env.get("TEMPLATE_CONFIGMAP_NAME", ""),
            template_configmap_namespace=env.get("TEMPLATE_CONFIGMAP_NAMESPACE", ""),
            aws_region=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or "us-east-1",
            s3_endpoint_url=env.get("S3_ENDPOINT_URL") or None,
            route53_endpoint_url=env.get("ROUTE53_ENDPOINT_URL") or None,
            metrics_port=_int(env, "METRICS_PORT", 8080),
            log_level=env.get("LOG_LEVEL", "INFO"),
            retry_delay_seconds=_int(env, "RETRY_DELAY_SECONDS", 30),
            resync_interval_seconds=_int(env, "RESYNC_INTERVAL_SECONDS", 300),
        )

    def template_collection(self, intent_namespace: str) -> str:
        """Return the "<namespace>/<name>" of the template ConfigMap.

        The ConfigMap namespace falls back to the intent's own namespace.
        """
        namespace = self.template_configmap_namespace or intent_namespace
        return f"{namespace}/{self.template_configmap_name}"
