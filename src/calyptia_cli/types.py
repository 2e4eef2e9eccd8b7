"""
Shared data types for the Calyptia CLI.

This module defines the internal representation of the entities managed
through the cloud API. These are internal types used by the resolver,
the provisioning orchestrator and the commands - not API models.

All types use @dataclass. Pydantic models are reserved for config
parsing and API responses (see calyptia_cli.cloud.models).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

CanonicalId = str
"""Opaque, globally unique identifier assigned by the cloud API."""


class EntityKind(str, Enum):
    """
    Kinds of entities that can be addressed by name or ID.

    The value is the stable machine name; `label` is the wording used in
    user-facing messages.
    """

    AGENT = "agent"
    CORE_INSTANCE = "core_instance"
    PIPELINE = "pipeline"
    FLEET = "fleet"
    ENVIRONMENT = "environment"
    CLUSTER_OBJECT = "cluster_object"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass(frozen=True)
class Scope:
    """
    Optional narrowing applied when listing or resolving entities.

    Attributes:
        environment_id: Only consider entities within this environment.
        core_instance_id: Only consider entities owned by this core instance
            (pipelines).
    """

    environment_id: CanonicalId | None = None
    core_instance_id: CanonicalId | None = None


@dataclass(frozen=True)
class ListFilter:
    """
    Filter for a directory listing.

    Attributes:
        name: Exact name match.
        scope: Environment / core instance narrowing.
        last: Maximum number of results. 0 means no limit.
    """

    name: str | None = None
    scope: Scope = field(default_factory=Scope)
    last: int = 0


@dataclass
class NamedEntity:
    """
    Common shape of every entity listed by the cloud API.

    `id` is unique across the directory, `name` is not.
    """

    id: CanonicalId
    name: str
    environment_id: CanonicalId | None = None
    created_at: datetime | None = None


@dataclass
class Agent(NamedEntity):
    """A fluent-bit or fluentd agent registered with a project."""

    type: str = ""
    version: str = ""
    environment_name: str = ""
    raw_config: str = ""
    last_metrics_added_at: datetime | None = None


@dataclass
class CoreInstance(NamedEntity):
    """A core instance (aggregator) record."""

    environment_name: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class Pipeline(NamedEntity):
    """A pipeline running on a core instance."""

    core_instance_id: CanonicalId | None = None
    replicas_count: int = 0
    status: str = ""


@dataclass
class Fleet(NamedEntity):
    tags: list[str] = field(default_factory=list)


@dataclass
class Environment(NamedEntity):
    pass


@dataclass
class ClusterObject(NamedEntity):
    kind: str = ""


@dataclass
class FleetFile:
    id: CanonicalId
    name: str
    created_at: datetime | None = None


@dataclass
class CreatedCoreInstance:
    """
    Result of registering a new core instance with the cloud API.

    This is the input to the provisioning orchestrator.

    Attributes:
        id: Canonical ID of the new core instance.
        name: Name assigned to the core instance (autogenerated by the
            cloud when none was requested).
        token: Core instance token, when returned by the API.
        created_at: Creation timestamp.
    """

    id: CanonicalId
    name: str
    token: str = ""
    created_at: datetime | None = None


@dataclass
class PipelinePort:
    """An endpoint exposed by a pipeline. An empty endpoint is still pending."""

    id: CanonicalId
    protocol: str
    frontend_port: int
    backend_port: int
    endpoint: str = ""
    created_at: datetime | None = None


@dataclass
class CoreInstanceSecret:
    id: CanonicalId
    key: str
    created_at: datetime | None = None


@dataclass
class CoreInstanceSecretPage:
    """
    One page of core instance secrets, newest first.

    Attributes:
        items: Secrets on this page.
        count: Total number of secrets of the core instance.
        end_cursor: Cursor to pass as `before` for the next page, if any.
    """

    items: list[CoreInstanceSecret]
    count: int = 0
    end_cursor: str | None = None


@dataclass
class PipelineFile:
    """A file attached to a pipeline, referenced from its config as {{files.<name>}}."""

    id: CanonicalId
    name: str = ""
    encrypted: bool = False
    created_at: datetime | None = None


class CheckStatus(str, Enum):
    NEW = "new"
    RUNNING = "running"
    OK = "ok"
    FAILED = "failed"


@dataclass
class IngestCheck:
    """A check that a core instance can ingest data through one config section."""

    id: CanonicalId
    config_section_id: str = ""
    status: str = ""
    retries: int = 0
    collect_logs: bool = False
    logs: str = ""
    created_at: datetime | None = None
