"""Remote system providers (S3 and Route 53) and their in-memory doubles."""

from .aws import AwsDnsProvider, AwsStorageProvider
from .base import DnsProvider, StorageProvider
from .memory import InMemoryDnsProvider, InMemoryIntentStore, InMemoryStorageProvider

__all__ = [
    "DnsProvider",
    "StorageProvider",
    "AwsDnsProvider",
    "AwsStorageProvider",
    "InMemoryDnsProvider",
    "InMemoryIntentStore",
    "InMemoryStorageProvider",
]
