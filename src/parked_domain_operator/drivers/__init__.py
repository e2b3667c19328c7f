"""Resource drivers: one per remote resource a ParkedDomain owns."""

from .bucket import BucketDriver
from .record import RecordDriver
from .zone import ZoneDriver

__all__ = ["BucketDriver", "RecordDriver", "ZoneDriver"]
