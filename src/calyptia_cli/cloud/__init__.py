"""Calyptia Cloud API client and response models."""

from calyptia_cli.cloud.client import DEFAULT_CLOUD_URL, PROJECT_TOKEN_HEADER, CloudClient

__all__ = ["CloudClient", "DEFAULT_CLOUD_URL", "PROJECT_TOKEN_HEADER"]
