"""Parking page template lookup."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from kubernetes.client.exceptions import ApiException

from .errors import NotFoundError, TemplateNotFoundError
from .utils.errors import translate_api_exception

logger = logging.getLogger(__name__)


class TemplateResolver(ABC):
    """Resolve a template by collection and key."""

    @abstractmethod
    def lookup(self, collection: str, key: str) -> str:
        """Return the template text.

        Raises:
            TemplateNotFoundError: If the collection or the key is missing.
        """


class ConfigMapTemplateResolver(TemplateResolver):
    """Read templates from ConfigMaps; ``collection`` is "<namespace>/<name>"."""

    def __init__(self, core_api: Any):
        self.core_api = core_api

    def lookup(self, collection: str, key: str) -> str:
        namespace, _, name = collection.partition("/")
        if not namespace or not name:
            raise TemplateNotFoundError(
                f"template ConfigMap is not configured (got '{collection}'); set TEMPLATE_CONFIGMAP_NAME"
            )

        try:
            config_map = self.core_api.read_namespaced_config_map(name=name, namespace=namespace)
        except ApiException as e:
            error = translate_api_exception(e, "read_namespaced_config_map")
            if isinstance(error, NotFoundError):
                raise TemplateNotFoundError(
                    f"template ConfigMap '{name}' not found in namespace '{namespace}'"
                ) from e
            raise error from e

        data = config_map.data or {}
        if key not in data:
            raise TemplateNotFoundError(f"template key '{key}' not found in ConfigMap '{name}'")

        logger.debug("Resolved template", extra={"configmap": collection, "template_key": key})
        return data[key]


class StaticTemplateResolver(TemplateResolver):
    """Serve templates from a nested dict: ``{collection: {key: text}}``."""

    def __init__(self, templates: dict[str, dict[str, str]] | None = None):
        self.templates = templates or {}

    def lookup(self, collection: str, key: str) -> str:
        items = self.templates.get(collection)
        if items is None:
            raise TemplateNotFoundError(f"template collection '{collection}' not found")
        if key not in items:
            raise TemplateNotFoundError(f"template key '{key}' not found in '{collection}'")
        return items[key]
