"""Environment-based configuration for the Calyptia CLI."""

import base64
import binascii
import json

import httpx
from pydantic_settings import BaseSettings

from calyptia_cli.cloud.client import DEFAULT_CLOUD_URL
from calyptia_cli.errors import ConfigError
from calyptia_cli.k8s.manifests import DEFAULT_CORE_IMAGE


class Settings(BaseSettings):
    """CLI configuration.

    All settings can be overridden via environment variables with
    CALYPTIA_ prefix, or a .env file in the working directory. For example:
        CALYPTIA_CLOUD_URL=https://cloud-api.calyptia.com
        CALYPTIA_CLOUD_TOKEN=<project token>
    Global command-line options take precedence over both.
    """

    # Cloud API
    cloud_url: str = DEFAULT_CLOUD_URL
    cloud_token: str = ""

    # Kubernetes provisioning
    core_image: str = DEFAULT_CORE_IMAGE

    model_config = {"env_prefix": "CALYPTIA_", "env_file": ".env", "extra": "ignore"}


def validate_cloud_url(raw: str) -> str:
    """Return the cloud URL without trailing slash. Only http(s) is accepted."""
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise ConfigError(f"invalid cloud url: {e}") from e
    if url.scheme not in ("http", "https"):
        raise ConfigError(f"invalid cloud url scheme {url.scheme!r}")
    return str(url).rstrip("/")


def decode_token(token: str) -> str:
    """
    Extract the project ID from a project token.

    A project token is `<payload>.<signature>` where payload is the
    unpadded base64url encoding of a JSON object with a "ProjectID" key.
    The signature is not checked here; the API verifies it.

    Raises:
        ConfigError: If the token is malformed.
    """
    parts = token.strip().split(".")
    if len(parts) != 2:
        raise ConfigError("invalid project token")

    payload = parts[0]
    payload += "=" * (-len(payload) % 4)
    try:
        decoded = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ConfigError(f"invalid project token: {e}") from e

    project_id = decoded.get("ProjectID") if isinstance(decoded, dict) else None
    if not project_id:
        raise ConfigError("invalid project token: missing project ID")
    return str(project_id)
