"""
Pydantic response types for the Calyptia Cloud API.

These are API response types for external data validation. Internal
types (Agent, CoreInstance, etc.) are dataclasses in calyptia_cli.types;
each model converts itself with to_entity().

Notes:
- The API uses camelCase keys with an upper-case "ID" suffix
  (e.g. "environmentID"); fields declare explicit aliases.
- Optional timestamps come back as null or are omitted.
"""

from datetime import datetime

from pydantic import Base64Bytes, BaseModel, ConfigDict, Field

from calyptia_cli.types import (
    Agent,
    ClusterObject,
    CoreInstance,
    CoreInstanceSecret,
    CoreInstanceSecretPage,
    CreatedCoreInstance,
    Environment,
    Fleet,
    FleetFile,
    IngestCheck,
    Pipeline,
    PipelineFile,
    PipelinePort,
)


class _APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AgentResponse(_APIModel):
    id: str
    name: str
    type: str = ""
    version: str = ""
    environment_id: str | None = Field(default=None, alias="environmentID")
    environment_name: str = Field(default="", alias="environmentName")
    raw_config: str = Field(default="", alias="rawConfig")
    last_metrics_added_at: datetime | None = Field(default=None, alias="lastMetricsAddedAt")
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> Agent:
        return Agent(
            id=self.id,
            name=self.name,
            environment_id=self.environment_id or None,
            created_at=self.created_at,
            type=self.type,
            version=self.version,
            environment_name=self.environment_name,
            raw_config=self.raw_config,
            last_metrics_added_at=self.last_metrics_added_at,
        )


class CoreInstanceResponse(_APIModel):
    id: str
    name: str
    environment_id: str | None = Field(default=None, alias="environmentID")
    environment_name: str = Field(default="", alias="environmentName")
    tags: list[str] | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> CoreInstance:
        return CoreInstance(
            id=self.id,
            name=self.name,
            environment_id=self.environment_id or None,
            created_at=self.created_at,
            environment_name=self.environment_name,
            tags=list(self.tags or []),
        )


class PipelineResponse(_APIModel):
    id: str
    name: str
    core_instance_id: str | None = Field(default=None, alias="aggregatorID")
    replicas_count: int = Field(default=0, alias="replicasCount")
    status: str = ""
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> Pipeline:
        return Pipeline(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            core_instance_id=self.core_instance_id,
            replicas_count=self.replicas_count,
            status=self.status,
        )


class FleetResponse(_APIModel):
    id: str
    name: str
    tags: list[str] | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> Fleet:
        return Fleet(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            tags=list(self.tags or []),
        )


class EnvironmentResponse(_APIModel):
    id: str
    name: str
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> Environment:
        return Environment(id=self.id, name=self.name, created_at=self.created_at)


class ClusterObjectResponse(_APIModel):
    id: str
    name: str
    kind: str = ""
    environment_id: str | None = Field(default=None, alias="environmentID")
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> ClusterObject:
        return ClusterObject(
            id=self.id,
            name=self.name,
            environment_id=self.environment_id or None,
            created_at=self.created_at,
            kind=self.kind,
        )


class FleetFileResponse(_APIModel):
    id: str
    name: str
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> FleetFile:
        return FleetFile(id=self.id, name=self.name, created_at=self.created_at)


class CreatedCoreInstanceResponse(_APIModel):
    """
    Response from POST /v1/projects/{project}/aggregators.

    Example response:
    {"id": "...", "name": "lively-otter", "token": "...", "createdAt": "..."}
    """

    id: str
    name: str
    token: str = ""
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_created(self) -> CreatedCoreInstance:
        return CreatedCoreInstance(
            id=self.id, name=self.name, token=self.token, created_at=self.created_at
        )


class PipelinePortResponse(_APIModel):
    id: str
    protocol: str = ""
    frontend_port: int = Field(default=0, alias="frontendPort")
    backend_port: int = Field(default=0, alias="backendPort")
    endpoint: str = ""
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> PipelinePort:
        return PipelinePort(
            id=self.id,
            protocol=self.protocol,
            frontend_port=self.frontend_port,
            backend_port=self.backend_port,
            endpoint=self.endpoint,
            created_at=self.created_at,
        )


class PipelinePortsResponse(_APIModel):
    items: list[PipelinePortResponse] | None = None

    def to_entities(self) -> list[PipelinePort]:
        return [p.to_entity() for p in self.items or []]


class CoreInstanceSecretResponse(_APIModel):
    id: str
    key: str
    created_at: datetime | None = Field(default=None, alias="createdAt")


class CoreInstanceSecretsResponse(_APIModel):
    """
    Response from GET /v1/core_instances/{id}/secrets.

    Secret values are not surfaced; only keys are listed.
    """

    items: list[CoreInstanceSecretResponse] | None = None
    count: int = 0
    end_cursor: str | None = Field(default=None, alias="endCursor")

    def to_page(self) -> CoreInstanceSecretPage:
        return CoreInstanceSecretPage(
            items=[
                CoreInstanceSecret(id=s.id, key=s.key, created_at=s.created_at)
                for s in self.items or []
            ],
            count=self.count,
            end_cursor=self.end_cursor,
        )


class CreatedResponse(_APIModel):
    """Body returned by create endpoints that only echo the new ID."""

    id: str
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_pipeline_file(self, name: str, encrypted: bool) -> PipelineFile:
        return PipelineFile(id=self.id, name=name, encrypted=encrypted, created_at=self.created_at)


class IngestCheckResponse(_APIModel):
    """
    Response from GET /v1/ingest_checks/{id}.

    Logs are raw bytes, sent base64-encoded.
    """

    id: str
    config_section_id: str = Field(default="", alias="configSectionID")
    status: str = ""
    retries: int = 0
    collect_logs: bool = Field(default=False, alias="collectLogs")
    logs: Base64Bytes | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_entity(self) -> IngestCheck:
        return IngestCheck(
            id=self.id,
            config_section_id=self.config_section_id,
            status=self.status,
            retries=self.retries,
            collect_logs=self.collect_logs,
            logs=(self.logs or b"").decode("utf-8", errors="replace"),
            created_at=self.created_at,
        )


class ErrorResponse(_APIModel):
    """Error body returned by the API: {"error": "..."}."""

    error: str = ""
