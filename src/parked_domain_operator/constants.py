"""Constants for the Parked Domain Operator."""

from __future__ import annotations

# API group and version
API_GROUP = "parking.minibaev.eu"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource kinds
KIND_PARKED_DOMAIN = "ParkedDomain"
PLURAL_PARKED_DOMAINS = "parkeddomains"

# Finalizer
FINALIZER = f"{API_GROUP}/finalizer"

# ParkedDomain spec defaults
DEFAULT_REGION = "eu-central-1"
DEFAULT_TEMPLATE_NAME = "default.html"

# Regions where CreateBucket must be called without a LocationConstraint
LEGACY_DEFAULT_REGION = "us-east-1"

# Website content
INDEX_DOCUMENT = "index.html"
INDEX_CONTENT_TYPE = "text/html"
TEMPLATE_PLACEHOLDER = "{{DOMAIN_NAME}}"
WEBSITE_ENDPOINT_SUFFIX = "s3-website"

# Canonical hosted zone IDs of the S3 website endpoints, used as alias targets.
# https://docs.aws.amazon.com/general/latest/gr/s3.html
S3_WEBSITE_HOSTED_ZONE_IDS = {
    "us-east-1": "Z3AQBSTGFYJSTF",
    "us-west-1": "Z2F56UZL2M1ACD",
    "us-west-2": "Z3BJ6K6RIION7M",
    "eu-west-1": "Z1BKCTXD74EZPE",
    "eu-central-1": "Z21DNDUVLTQW6Q",
}

# Route 53
HOSTED_ZONE_ID_PREFIX = "/hostedzone/"
CALLER_REFERENCE_PREFIX = "parkeddomain-operator"
RECORD_CHANGE_COMMENT = "Managed by ParkedDomain Operator"
MAX_CHANGES_PER_BATCH = 1000
APEX_PROTECTED_RECORD_TYPES = frozenset({"NS", "SOA"})

# Status values
STATUS_PROVISIONED = "Provisioned"
STATUS_ERROR_PREFIX = "Error: "

# Reconciliation stages, reported as "Error: <stage>"
STAGE_VALIDATION = "Validation"
STAGE_ZONE = "Route53 Zone"
STAGE_BUCKET = "S3 Bucket"
STAGE_RECORD = "Route53 A Record"
STAGE_CLEANUP = "Cleanup"
