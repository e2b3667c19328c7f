"""Main entry point for the Parked Domain Operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import handlers  # noqa: F401  registers the kopf handlers
from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .handlers.parked_domain import ParkedDomainHandler
from .handlers.shared import build_engine


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator."""
    operator_config = OperatorConfig.from_env()

    # Set up structured JSON logging
    structured_logging.setup_structured_logging(operator_config.log_level)
    logger = logging.getLogger(__name__)

    # Use annotations for kopf's own progress so the status subresource only
    # carries the fields this operator reports
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0
    settings.networking.error_backoffs = [1, 5, 15, 30]
    settings.execution.max_workers = 4

    if not operator_config.template_configmap_name:
        logger.warning("TEMPLATE_CONFIGMAP_NAME is not set; every bucket stage will fail until it is")

    # Drivers and their clients are built once and shared by all reconciliations
    memo.engine = build_engine(operator_config)
    memo.handler = ParkedDomainHandler.from_config(operator_config)

    # Start metrics HTTP server with health check endpoints
    health.start_health_server(operator_config.metrics_port)
    health.mark_ready()
    logger.info(
        "Parked Domain Operator started",
        extra={"metrics_port": operator_config.metrics_port, "aws_region": operator_config.aws_region},
    )


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Report not-ready while the operator shuts down."""
    health.mark_not_ready()


def main() -> None:
    """Run the operator (``kopf run`` equivalent)."""
    kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
