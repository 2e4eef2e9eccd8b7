"""
Per-command session carrying the cloud client and project identity.

Every command opens one Session and passes it (or what it needs from it)
explicitly; there is no process-wide mutable configuration.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from calyptia_cli.cloud.client import PROJECT_TOKEN_HEADER, CloudClient
from calyptia_cli.config import Settings, decode_token, validate_cloud_url
from calyptia_cli.errors import ConfigError
from calyptia_cli.resolve.directory import CloudDirectory
from calyptia_cli.resolve.keys import KeyResolver

REQUEST_TIMEOUT_S = 30.0


@dataclass
class Session:
    """
    Authenticated view of one cloud project.

    Attributes:
        client: Cloud API client.
        project_id: Project decoded from the token.
        project_token: Project token, also injected into provisioned workloads.
        base_url: Cloud API base URL.
    """

    client: CloudClient
    project_id: str
    project_token: str
    base_url: str

    @property
    def directory(self) -> CloudDirectory:
        return CloudDirectory(client=self.client, project_id=self.project_id)

    @property
    def resolver(self) -> KeyResolver:
        return KeyResolver(self.directory)


@asynccontextmanager
async def open_session(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> AsyncIterator[Session]:
    """
    Open a session for the configured project.

    Args:
        settings: Resolved CLI settings.
        transport: Optional httpx transport (tests).

    Raises:
        ConfigError: If the URL is invalid or the token is missing/malformed.
    """
    base_url = validate_cloud_url(settings.cloud_url)
    token = settings.cloud_token.strip()
    if not token:
        raise ConfigError("missing project token (set CALYPTIA_CLOUD_TOKEN or pass --token)")
    project_id = decode_token(token)

    async with httpx.AsyncClient(
        base_url=base_url,
        headers={PROJECT_TOKEN_HEADER: token},
        timeout=REQUEST_TIMEOUT_S,
        transport=transport,
    ) as http:
        yield Session(
            client=CloudClient(http=http),
            project_id=project_id,
            project_token=token,
            base_url=base_url,
        )
