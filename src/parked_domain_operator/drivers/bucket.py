"""Bucket driver: the S3 static website that serves the parking page."""

from __future__ import annotations

import json
import logging

from .. import metrics
from ..constants import (
    INDEX_CONTENT_TYPE,
    INDEX_DOCUMENT,
    KIND_PARKED_DOMAIN,
    LEGACY_DEFAULT_REGION,
    TEMPLATE_PLACEHOLDER,
    WEBSITE_ENDPOINT_SUFFIX,
)
from ..errors import ConflictError, NotFoundError
from ..models import TemplateRef
from ..providers.base import StorageProvider
from ..templates import TemplateResolver
from ..tracing import trace_span

logger = logging.getLogger(__name__)


def website_endpoint(bucket_name: str, region: str) -> str:
    """Return the S3 website endpoint host name of a bucket."""
    return f"{bucket_name}.{WEBSITE_ENDPOINT_SUFFIX}.{region}.amazonaws.com"


def public_read_policy(bucket_name: str) -> str:
    """Return a policy granting anonymous GetObject on the bucket's objects."""
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Sid": "PublicReadGetObject",
                    "Effect": "Allow",
                    "Principal": "*",
                    "Action": "s3:GetObject",
                    "Resource": f"arn:aws:s3:::{bucket_name}/*",
                }
            ],
        },
        separators=(",", ":"),
    )


def render_template(template: str, domain_name: str) -> str:
    return template.replace(TEMPLATE_PLACEHOLDER, domain_name)


class BucketDriver:
    """Create, configure, empty and delete a website bucket.

    ``ensure_website_bucket`` runs every step on every call; each step is an
    idempotent overwrite, so a call that failed halfway is completed by the
    next one.
    """

    def __init__(self, storage: StorageProvider, templates: TemplateResolver):
        self.storage = storage
        self.templates = templates

    def ensure_website_bucket(self, name: str, region: str, template: TemplateRef) -> str:
        """Converge the bucket and return its website endpoint.

        Args:
            name: Bucket name, which is the domain name.
            region: Region the bucket lives in.
            template: Where to find the parking page template.

        Returns:
            The website endpoint, e.g. ``example.com.s3-website.eu-central-1.amazonaws.com``.
        """
        with trace_span("ensure_website_bucket", kind=KIND_PARKED_DOMAIN, attributes={"bucket_name": name}):
            storage = self.storage.for_region(region)
            self._ensure_bucket_exists(storage, name, region)

            content = render_template(self.templates.lookup(template.collection, template.key), name)
            storage.put_object(name, INDEX_DOCUMENT, content.encode("utf-8"), INDEX_CONTENT_TYPE)
            self._count("put_index")

            storage.put_bucket_website(name, INDEX_DOCUMENT)
            self._count("put_website")

            storage.allow_public_policy(name)
            storage.put_bucket_policy(name, public_read_policy(name))
            self._count("put_policy")

        endpoint = website_endpoint(name, region)
        logger.info(
            f"Reconciled website bucket {name}",
            extra={"bucket_name": name, "region": region, "endpoint": endpoint},
        )
        return endpoint

    def _ensure_bucket_exists(self, storage: StorageProvider, name: str, region: str) -> None:
        if storage.bucket_exists(name):
            logger.debug(f"Bucket {name} already exists", extra={"bucket_name": name})
            return

        logger.info(f"Bucket {name} not found, creating it", extra={"bucket_name": name, "region": region})
        location_constraint = None if region == LEGACY_DEFAULT_REGION else region
        try:
            storage.create_bucket(name, location_constraint)
        except ConflictError as e:
            # Created by an earlier attempt whose response was lost
            if e.code != "BucketAlreadyOwnedByYou":
                self._count("create", "failed")
                raise
            logger.info(f"Bucket {name} is already owned by us, continuing", extra={"bucket_name": name})
        self._count("create")

    def teardown_bucket(self, name: str, region: str = "") -> None:
        """Empty and delete the bucket; an absent bucket counts as deleted."""
        storage = self.storage.for_region(region)
        with trace_span("teardown_bucket", kind=KIND_PARKED_DOMAIN, attributes={"bucket_name": name}):
            logger.info(f"Starting bucket cleanup for {name}", extra={"bucket_name": name})
            try:
                deleted = 0
                for keys in storage.list_object_pages(name):
                    storage.delete_objects(name, keys)
                    deleted += len(keys)
                storage.delete_bucket(name)
            except NotFoundError:
                logger.info(f"Bucket {name} does not exist, nothing to clean up", extra={"bucket_name": name})
                self._count("delete", "absent")
                return

        self._count("delete")
        logger.info(f"Bucket cleanup complete for {name}", extra={"bucket_name": name, "objects_deleted": deleted})

    @staticmethod
    def _count(operation: str, result: str = "success") -> None:
        metrics.bucket_operations_total.labels(operation=operation, result=result).inc()
