"""
Calyptia Cloud API client.

This module provides the CloudClient class for listing, reading,
creating and deleting the entities of a project through the Cloud HTTP
API.

CloudClient receives an injected httpx.AsyncClient with base_url set to
the Cloud API and the project token header already configured (see
calyptia_cli.session). All methods are async. Network failures raise
TransportError; non-success responses raise CloudAPIError; success
responses that do not decode raise MalformedResponseError.
"""

import base64
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from calyptia_cli.cloud.models import (
    AgentResponse,
    ClusterObjectResponse,
    CoreInstanceResponse,
    CoreInstanceSecretsResponse,
    CreatedCoreInstanceResponse,
    CreatedResponse,
    EnvironmentResponse,
    ErrorResponse,
    FleetFileResponse,
    FleetResponse,
    IngestCheckResponse,
    PipelinePortsResponse,
    PipelineResponse,
)
from calyptia_cli.errors import CloudAPIError, MalformedResponseError, TransportError
from calyptia_cli.types import (
    Agent,
    CanonicalId,
    CheckStatus,
    CoreInstance,
    CoreInstanceSecretPage,
    CreatedCoreInstance,
    EntityKind,
    FleetFile,
    IngestCheck,
    ListFilter,
    NamedEntity,
    PipelineFile,
    PipelinePort,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CLOUD_URL = "https://cloud-api.calyptia.com"
PROJECT_TOKEN_HEADER = "X-Project-Token"

# Collection path segment and response model per entity kind.
_COLLECTIONS: dict[EntityKind, tuple[str, type[BaseModel]]] = {
    EntityKind.AGENT: ("agents", AgentResponse),
    EntityKind.CORE_INSTANCE: ("aggregators", CoreInstanceResponse),
    EntityKind.PIPELINE: ("pipelines", PipelineResponse),
    EntityKind.FLEET: ("fleets", FleetResponse),
    EntityKind.ENVIRONMENT: ("environments", EnvironmentResponse),
    EntityKind.CLUSTER_OBJECT: ("cluster_objects", ClusterObjectResponse),
}


def _error_message(response: httpx.Response) -> str:
    try:
        body = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        body = ErrorResponse()
    return body.error or response.reason_phrase or "unknown error"


def _list_params(flt: ListFilter) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if flt.name is not None:
        params["name"] = flt.name
    if flt.scope.environment_id:
        params["environment_id"] = flt.scope.environment_id
    if flt.scope.core_instance_id:
        params["core_instance_id"] = flt.scope.core_instance_id
    if flt.last > 0:
        params["last"] = flt.last
    return params


def _decode(response: httpx.Response, parse: Callable[[Any], T]) -> T:
    """Apply parse to the JSON body, reporting any decoding failure as MalformedResponseError."""
    try:
        return parse(response.json())
    except (ValueError, ValidationError) as e:
        detail = str(e).splitlines()[0] if str(e) else type(e).__name__
        raise MalformedResponseError(response.request.url.path, detail) from e


@dataclass
class CloudClient:
    """
    Cloud API client with injected httpx client.

    Attributes:
        http: Pre-configured httpx.AsyncClient with base_url set to the
            Cloud API and the X-Project-Token header set.

    Example:
        async with httpx.AsyncClient(base_url=DEFAULT_CLOUD_URL, headers=...) as http:
            client = CloudClient(http=http)
            agents = await client.list_entities(project_id, EntityKind.AGENT, ListFilter())
    """

    http: httpx.AsyncClient

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s %s", method, path, kwargs.get("params") or "")
        try:
            response = await self.http.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path}: {e}") from e

        if response.is_error:
            raise CloudAPIError(response.status_code, _error_message(response))
        return response

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    async def list_entities(
        self, project_id: str, kind: EntityKind, flt: ListFilter
    ) -> Sequence[NamedEntity]:
        """
        List entities of one kind within a project.

        Calls GET /v1/projects/{project_id}/{collection} with the filter
        mapped to query parameters (name, environment_id,
        core_instance_id, last).

        Returns:
            Entities in the order returned by the API.

        Raises:
            TransportError: On network failures.
            CloudAPIError: On HTTP errors (4xx, 5xx responses).
            MalformedResponseError: On malformed response data.
        """
        collection, model = _COLLECTIONS[kind]
        response = await self._request(
            "GET",
            f"/v1/projects/{project_id}/{collection}",
            params=_list_params(flt),
        )
        return _decode(
            response, lambda body: [model.model_validate(item).to_entity() for item in body or []]
        )

    async def list_fleet_files(self, fleet_id: CanonicalId) -> list[FleetFile]:
        response = await self._request("GET", f"/v1/fleets/{fleet_id}/files")
        return _decode(
            response,
            lambda body: [FleetFileResponse.model_validate(item).to_entity() for item in body or []],
        )

    async def list_pipeline_ports(self, pipeline_id: CanonicalId, last: int = 0) -> list[PipelinePort]:
        """List the endpoints exposed by a pipeline. last=0 means no limit."""
        params = {"last": last} if last > 0 else {}
        response = await self._request("GET", f"/v1/pipelines/{pipeline_id}/ports", params=params)
        return _decode(response, lambda body: PipelinePortsResponse.model_validate(body or {}).to_entities())

    async def list_core_instance_secrets(
        self,
        core_instance_id: CanonicalId,
        *,
        last: int | None = None,
        before: str | None = None,
    ) -> CoreInstanceSecretPage:
        """
        List one page of secret keys of a core instance.

        Paging is backwards: pass the page's end_cursor as `before` to get
        the next (older) page.
        """
        params: dict[str, Any] = {}
        if last is not None:
            params["last"] = last
        if before is not None:
            params["before"] = before
        response = await self._request(
            "GET", f"/v1/core_instances/{core_instance_id}/secrets", params=params
        )
        return _decode(response, lambda body: CoreInstanceSecretsResponse.model_validate(body).to_page())

    # -------------------------------------------------------------------------
    # Single entities
    # -------------------------------------------------------------------------

    async def get_agent(self, agent_id: CanonicalId) -> Agent:
        response = await self._request("GET", f"/v1/agents/{agent_id}")
        return _decode(response, lambda body: AgentResponse.model_validate(body).to_entity())

    async def get_core_instance(self, core_instance_id: CanonicalId) -> CoreInstance:
        response = await self._request("GET", f"/v1/aggregators/{core_instance_id}")
        return _decode(response, lambda body: CoreInstanceResponse.model_validate(body).to_entity())

    async def get_ingest_check(self, ingest_check_id: CanonicalId) -> IngestCheck:
        response = await self._request("GET", f"/v1/ingest_checks/{ingest_check_id}")
        return _decode(response, lambda body: IngestCheckResponse.model_validate(body).to_entity())

    async def create_core_instance(
        self,
        project_id: str,
        *,
        name: str = "",
        environment_id: CanonicalId | None = None,
        add_health_check_pipeline: bool = True,
        tags: Sequence[str] = (),
    ) -> CreatedCoreInstance:
        """
        Register a new core instance with the project.

        Calls POST /v1/projects/{project_id}/aggregators. An empty name
        lets the cloud generate one.

        Returns:
            The created record, including the assigned ID and name.
        """
        body: dict[str, Any] = {
            "addHealthCheckPipeline": add_health_check_pipeline,
            "tags": list(tags),
        }
        if name:
            body["name"] = name
        if environment_id:
            body["environmentID"] = environment_id

        response = await self._request(
            "POST", f"/v1/projects/{project_id}/aggregators", json=body
        )
        return _decode(response, lambda data: CreatedCoreInstanceResponse.model_validate(data).to_created())

    async def create_pipeline_file(
        self,
        pipeline_id: CanonicalId,
        *,
        name: str,
        contents: bytes,
        encrypted: bool = False,
    ) -> PipelineFile:
        """
        Attach a file to a pipeline.

        Calls POST /v1/pipelines/{pipeline_id}/files. Contents are sent
        base64-encoded.
        """
        body = {
            "name": name,
            "contents": base64.b64encode(contents).decode("ascii"),
            "encrypted": encrypted,
        }
        response = await self._request("POST", f"/v1/pipelines/{pipeline_id}/files", json=body)
        return _decode(
            response,
            lambda data: CreatedResponse.model_validate(data).to_pipeline_file(name, encrypted),
        )

    async def create_ingest_check(
        self,
        core_instance_id: CanonicalId,
        *,
        config_section_id: str,
        retries: int = 0,
        status: CheckStatus | None = None,
        collect_logs: bool = False,
    ) -> CanonicalId:
        """
        Create an ingest check on a core instance.

        Calls POST /v1/core_instances/{core_instance_id}/ingest_checks.

        Returns:
            ID of the new ingest check.
        """
        body: dict[str, Any] = {
            "configSectionID": config_section_id,
            "collectLogs": collect_logs,
        }
        if retries > 0:
            body["retries"] = retries
        if status is not None:
            body["status"] = status.value

        response = await self._request(
            "POST", f"/v1/core_instances/{core_instance_id}/ingest_checks", json=body
        )
        return _decode(response, lambda data: CreatedResponse.model_validate(data).id)

    async def update_pipeline_cluster_objects(
        self, pipeline_id: CanonicalId, cluster_object_ids: Sequence[CanonicalId]
    ) -> None:
        await self._request(
            "PATCH",
            f"/v1/pipelines/{pipeline_id}/cluster_objects",
            json={"clusterObjectsIDs": list(cluster_object_ids)},
        )

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    async def delete_agent(self, agent_id: CanonicalId) -> None:
        await self._request("DELETE", f"/v1/agents/{agent_id}")

    async def delete_core_instance(self, core_instance_id: CanonicalId) -> None:
        await self._request("DELETE", f"/v1/aggregators/{core_instance_id}")

    async def delete_pipeline(self, pipeline_id: CanonicalId) -> None:
        await self._request("DELETE", f"/v1/pipelines/{pipeline_id}")

    async def delete_fleet(self, fleet_id: CanonicalId) -> None:
        await self._request("DELETE", f"/v1/fleets/{fleet_id}")

    async def delete_fleet_file(self, fleet_file_id: CanonicalId) -> None:
        await self._request("DELETE", f"/v1/fleet_files/{fleet_file_id}")
