"""Finalizer gate: decides between the create path and the delete path."""

from __future__ import annotations

import enum
import logging

from . import metrics
from .constants import FINALIZER
from .models import Intent
from .store import IntentStore

logger = logging.getLogger(__name__)


class FinalizerState(enum.Enum):
    """Where an intent stands in the finalizer lifecycle.

    NO_FINALIZER -> REGISTERED -> DELETING -> REMOVED
    """

    NO_FINALIZER = "NoFinalizer"
    REGISTERED = "Registered"
    DELETING = "Deleting"
    REMOVED = "Removed"


class FinalizerGate:
    """Adds and removes the operator's finalizer token.

    Both transitions are compare-and-swap writes against the intent's
    resource version; a concurrent edit makes them fail with
    ``ConflictError`` and the caller retries from a fresh read.
    """

    def __init__(self, store: IntentStore, token: str = FINALIZER):
        self.store = store
        self.token = token

    def state_of(self, intent: Intent) -> FinalizerState:
        present = intent.has_finalizer(self.token)
        if intent.deletion_requested:
            return FinalizerState.DELETING if present else FinalizerState.REMOVED
        return FinalizerState.REGISTERED if present else FinalizerState.NO_FINALIZER

    def register(self, intent: Intent) -> Intent:
        """Add the token (NO_FINALIZER -> REGISTERED) and persist it."""
        if intent.has_finalizer(self.token):
            return intent
        intent.finalizers.append(self.token)
        updated = self.store.update(intent)
        metrics.finalizer_transitions_total.labels(transition="registered").inc()
        logger.info(f"Added finalizer to {intent.key}", extra={"intent": str(intent.key)})
        return updated

    def release(self, intent: Intent) -> None:
        """Remove the token (DELETING -> REMOVED) and persist it.

        Only call once every remote resource is proven absent.
        """
        if not intent.has_finalizer(self.token):
            return
        intent.finalizers = [f for f in intent.finalizers if f != self.token]
        self.store.update(intent)
        metrics.finalizer_transitions_total.labels(transition="removed").inc()
        logger.info(f"Removed finalizer from {intent.key}", extra={"intent": str(intent.key)})
