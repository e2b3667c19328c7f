"""Kubernetes operator that parks domains on an S3 website behind Route 53."""

__version__ = "0.1.0"
