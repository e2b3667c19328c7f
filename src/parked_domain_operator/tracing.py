"""Lightweight span tracking for reconciliation stages."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator

from . import metrics

logger = logging.getLogger(__name__)


@contextmanager
def trace_span(
    name: str,
    kind: str = "",
    attributes: dict[str, Any] | None = None,
) -> Iterator[None]:
    """Time a block of work and record it as a span.

    The duration is observed into ``span_duration_seconds`` whether the
    block succeeds or raises; exceptions are re-raised untouched.
    """
    attributes = attributes or {}
    start_time = time.time()
    logger.debug(f"span {name} started", extra={"span": name, "kind": kind, **attributes})
    outcome = "ok"
    try:
        yield
    except Exception:
        outcome = "error"
        raise
    finally:
        duration = time.time() - start_time
        metrics.span_duration_seconds.labels(span=name, kind=kind).observe(duration)
        logger.debug(
            f"span {name} finished",
            extra={"span": name, "kind": kind, "outcome": outcome, "duration": duration, **attributes},
        )
