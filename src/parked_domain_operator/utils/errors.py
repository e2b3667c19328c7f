"""Translation of SDK exceptions into the operator error taxonomy."""

from __future__ import annotations

import re

from botocore.exceptions import BotoCoreError, ClientError
from kubernetes.client.exceptions import ApiException

from ..errors import (
    ConflictError,
    NotFoundError,
    ParkedDomainError,
    TransientError,
)

NOT_FOUND_CODES = frozenset({
    "404",
    "NotFound",
    "NoSuchBucket",
    "NoSuchHostedZone",
})

CONFLICT_CODES = frozenset({
    "BucketAlreadyExists",
    "BucketAlreadyOwnedByYou",
    "ConflictingDomainExists",
    "HostedZoneAlreadyExists",
})

THROTTLING_CODES = frozenset({
    "Throttling",
    "ThrottlingException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "SlowDown",
    "PriorRequestNotComplete",
    "ServiceUnavailable",
    "InternalError",
    "RequestTimeout",
    "OperationAborted",
})

_SECRET_PATTERNS = [
    re.compile(r"(AKIA|ASIA)[0-9A-Z]{16}"),
    re.compile(r"(?i)(aws_secret_access_key|secret[_-]?key|token)(\s*[=:]\s*)\S+"),
]


def client_error_code(error: ClientError) -> str:
    """Return the error code of a botocore ClientError ("" if absent)."""
    return str(error.response.get("Error", {}).get("Code", ""))


def translate_client_error(error: Exception, operation: str) -> Exception:
    """Map a boto3 exception onto the operator error taxonomy.

    Exceptions that do not belong to botocore are returned unchanged.
    """
    if isinstance(error, ClientError):
        code = client_error_code(error)
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        message = f"{operation} failed: {code or status}: {sanitize_exception(error)}"
        # Known codes win over the HTTP status: S3 answers OperationAborted with 409
        if code in NOT_FOUND_CODES:
            return NotFoundError(message, code)
        elif code in THROTTLING_CODES:
            return TransientError(message, code)
        elif code in CONFLICT_CODES:
            return ConflictError(message, code)
        elif status == 404:
            return NotFoundError(message, code)
        elif status == 409:
            return ConflictError(message, code)
        elif status == 429 or status >= 500:
            return TransientError(message, code)
        return ParkedDomainError(message, code)
    if isinstance(error, BotoCoreError):
        return TransientError(f"{operation} failed: {sanitize_exception(error)}")
    return error


def translate_api_exception(error: ApiException, operation: str) -> Exception:
    """Map a Kubernetes ApiException onto the operator error taxonomy."""
    message = f"{operation} failed: {error.status} {error.reason}"
    if error.status == 404:
        return NotFoundError(message)
    if error.status == 409:
        return ConflictError(message)
    if error.status in (429, 500, 502, 503, 504):
        return TransientError(message)
    return ParkedDomainError(message)


def sanitize_exception(error: BaseException) -> str:
    """Render an exception as text with access keys and secrets masked."""
    text = str(error)
    text = _SECRET_PATTERNS[0].sub("****", text)
    text = _SECRET_PATTERNS[1].sub(r"\1\2****", text)
    return text
