"""Data model for ParkedDomain intents and the remote resources they own."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .constants import DEFAULT_REGION, DEFAULT_TEMPLATE_NAME


class IntentKey(NamedTuple):
    """Namespaced name of a ParkedDomain resource."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class IntentStatus:
    """Observed state persisted on the intent's status subresource."""

    state: str = ""
    zone_id: str = ""
    name_servers: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, status: dict[str, Any] | None) -> IntentStatus:
        status = status or {}
        return cls(
            state=status.get("status", "") or "",
            zone_id=status.get("zoneID", "") or "",
            name_servers=list(status.get("nameServers") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.state,
            "zoneID": self.zone_id,
            "nameServers": list(self.name_servers),
        }


@dataclass
class Intent:
    """A ParkedDomain resource as seen by the reconciliation engine.

    ``body`` keeps the full object as read from the store so that updates
    can be written back without losing fields this model does not know
    about.
    """

    key: IntentKey
    domain_name: str
    region: str = DEFAULT_REGION
    template_name: str = DEFAULT_TEMPLATE_NAME
    deletion_requested: bool = False
    finalizers: list[str] = field(default_factory=list)
    resource_version: str = ""
    uid: str = ""
    status: IntentStatus = field(default_factory=IntentStatus)
    body: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> Intent:
        """Build an intent from a ParkedDomain object."""
        meta = body.get("metadata", {}) or {}
        spec = body.get("spec", {}) or {}
        return cls(
            key=IntentKey(meta.get("namespace", "default"), meta.get("name", "")),
            domain_name=spec.get("domainName", "") or "",
            region=spec.get("region") or DEFAULT_REGION,
            template_name=spec.get("templateName") or DEFAULT_TEMPLATE_NAME,
            deletion_requested=bool(meta.get("deletionTimestamp")),
            finalizers=list(meta.get("finalizers") or []),
            resource_version=str(meta.get("resourceVersion", "") or ""),
            uid=meta.get("uid", "") or "",
            status=IntentStatus.from_dict(body.get("status")),
            body=copy.deepcopy(body),
        )

    def to_body(self) -> dict[str, Any]:
        """Render the intent back into an object suitable for a full update.

        Only metadata owned by the engine (finalizers, resourceVersion) is
        written back; spec and status are left as they were read.
        """
        body = copy.deepcopy(self.body)
        meta = body.setdefault("metadata", {})
        meta["namespace"] = self.key.namespace
        meta["name"] = self.key.name
        meta["finalizers"] = list(self.finalizers)
        if self.resource_version:
            meta["resourceVersion"] = self.resource_version
        return body

    def has_finalizer(self, token: str) -> bool:
        return token in self.finalizers

    @property
    def bucket(self) -> BucketRef:
        return BucketRef(name=self.domain_name, region=self.region)


@dataclass(frozen=True)
class BucketRef:
    name: str
    region: str


@dataclass
class ZoneRef:
    id: str
    name: str
    name_servers: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RecordRef:
    name: str
    alias_target: str
    alias_zone_id: str


@dataclass(frozen=True)
class TemplateRef:
    """Location of a parking page template: a collection and a key in it."""

    collection: str
    key: str
