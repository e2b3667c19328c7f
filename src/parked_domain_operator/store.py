"""Access to ParkedDomain intents with optimistic concurrency."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from kubernetes.client.exceptions import ApiException

from .constants import API_GROUP, API_VERSION, PLURAL_PARKED_DOMAINS
from .models import Intent, IntentKey
from .utils.errors import translate_api_exception


class IntentStore(ABC):
    """Versioned key-value store holding the intents."""

    @abstractmethod
    def get(self, key: IntentKey) -> Intent:
        """Fetch an intent.

        Raises:
            NotFoundError: If the intent does not exist (anymore).
        """

    @abstractmethod
    def update(self, intent: Intent) -> Intent:
        """Write the intent's metadata back if its resource version is current.

        Raises:
            ConflictError: If the stored object changed since it was read.
        """

    @abstractmethod
    def patch_status(self, key: IntentKey, status: dict[str, Any]) -> None:
        """Merge the given fields into the intent's status."""


class KubernetesIntentStore(IntentStore):
    """Intents stored as ParkedDomain custom resources."""

    def __init__(self, api: Any):
        self.api = api

    def get(self, key: IntentKey) -> Intent:
        try:
            body = self.api.get_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=key.namespace,
                plural=PLURAL_PARKED_DOMAINS,
                name=key.name,
            )
        except ApiException as e:
            raise translate_api_exception(e, f"get {key}") from e
        return Intent.from_body(body)

    def update(self, intent: Intent) -> Intent:
        # replace carries metadata.resourceVersion, so the API server rejects
        # stale writes with 409
        try:
            body = self.api.replace_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=intent.key.namespace,
                plural=PLURAL_PARKED_DOMAINS,
                name=intent.key.name,
                body=intent.to_body(),
            )
        except ApiException as e:
            raise translate_api_exception(e, f"update {intent.key}") from e
        return Intent.from_body(body)

    def patch_status(self, key: IntentKey, status: dict[str, Any]) -> None:
        try:
            self.api.patch_namespaced_custom_object_status(
                group=API_GROUP,
                version=API_VERSION,
                namespace=key.namespace,
                plural=PLURAL_PARKED_DOMAINS,
                name=key.name,
                body={"status": status},
            )
        except ApiException as e:
            raise translate_api_exception(e, f"patch status of {key}") from e

