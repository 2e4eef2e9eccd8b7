"""Delete commands.

Single-entity commands resolve the key (name or ID) and delete one entity.
Plural commands prefetch the full set, ask for confirmation listing the
disambiguated keys, and delete every item concurrently with run_all().
"""

from collections.abc import Callable, Coroutine, Sequence
from typing import Any

import typer

from calyptia_cli.bulk import run_all
from calyptia_cli.cli.common import confirm, console, get_settings, run
from calyptia_cli.cli.completion import (
    complete_agents,
    complete_core_instances,
    complete_environments,
    complete_fleets,
    complete_pipelines,
)
from calyptia_cli.cli.output import is_agent_active
from calyptia_cli.cloud.client import CloudClient
from calyptia_cli.config import Settings
from calyptia_cli.errors import EntityNotFoundError
from calyptia_cli.resolve.keys import build_keys
from calyptia_cli.session import open_session
from calyptia_cli.types import EntityKind, ListFilter, NamedEntity, Scope

delete_app = typer.Typer(help="Delete one or many entities")

_YES_HELP = "Confirm deletion"
_ENVIRONMENT_HELP = "Calyptia environment ID or name"

DeleteFn = Callable[[CloudClient, str], Coroutine[Any, Any, None]]


def _delete_one(
    settings: Settings,
    kind: EntityKind,
    key: str,
    delete: DeleteFn,
    environment: str = "",
) -> None:
    async def _delete() -> None:
        async with open_session(settings) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            entity_id = await session.resolver.resolve(
                kind, key, Scope(environment_id=environment_id)
            )
            await delete(session.client, entity_id)

    run(_delete())


def _delete_many(
    settings: Settings, kind: EntityKind, entities: Sequence[NamedEntity], delete: DeleteFn
) -> None:
    async def _delete() -> int:
        async with open_session(settings) as session:
            return await run_all(entities, lambda e: delete(session.client, e.id))

    deleted = run(_delete())
    console.print(f"Successfully deleted {deleted} {kind.label}s")


def _confirm_many(entities: Sequence[NamedEntity], assume_yes: bool) -> bool:
    keys = "\n".join(build_keys(entities))
    return confirm(
        f"You are about to delete:\n\n{keys}\n\nAre you sure you want to delete all of them?",
        assume_yes,
    )


@delete_app.command("agent")
def delete_agent(
    ctx: typer.Context,
    agent_key: str = typer.Argument(..., metavar="AGENT", autocompletion=complete_agents),
    environment: str = typer.Option(
        "", "--environment", help=_ENVIRONMENT_HELP, autocompletion=complete_environments
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help=_YES_HELP),
) -> None:
    """Delete a single agent by ID or name."""
    if not confirm(f"Are you sure you want to delete {agent_key!r}?", yes):
        return
    _delete_one(
        get_settings(ctx), EntityKind.AGENT, agent_key, CloudClient.delete_agent, environment
    )


@delete_app.command("agents")
def delete_agents(
    ctx: typer.Context,
    inactive: bool = typer.Option(
        True, "--inactive/--all", help="Delete inactive agents only"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help=_YES_HELP),
) -> None:
    """Delete many agents from a project."""
    settings = get_settings(ctx)

    async def _prefetch():
        async with open_session(settings) as session:
            return await session.client.list_entities(
                session.project_id, EntityKind.AGENT, ListFilter()
            )

    agents = list(run(_prefetch()))
    if inactive:
        agents = [a for a in agents if not is_agent_active(a.last_metrics_added_at)]

    if not agents:
        console.print("No agents to delete")
        return
    if not _confirm_many(agents, yes):
        return
    _delete_many(settings, EntityKind.AGENT, agents, CloudClient.delete_agent)


@delete_app.command("core_instance")
def delete_core_instance(
    ctx: typer.Context,
    core_instance: str = typer.Argument(
        ..., metavar="CORE_INSTANCE", autocompletion=complete_core_instances
    ),
    environment: str = typer.Option(
        "", "--environment", help=_ENVIRONMENT_HELP, autocompletion=complete_environments
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help=_YES_HELP),
) -> None:
    """Delete a single core instance by ID or name.

    Kubernetes objects created for the core instance are not removed.
    """
    if not confirm(f"Are you sure you want to delete {core_instance!r}?", yes):
        return
    _delete_one(
        get_settings(ctx),
        EntityKind.CORE_INSTANCE,
        core_instance,
        CloudClient.delete_core_instance,
        environment,
    )


@delete_app.command("pipeline")
def delete_pipeline(
    ctx: typer.Context,
    pipeline: str = typer.Argument(..., metavar="PIPELINE", autocompletion=complete_pipelines),
    yes: bool = typer.Option(False, "--yes", "-y", help=_YES_HELP),
) -> None:
    """Delete a single pipeline by ID or name."""
    if not confirm(f"Are you sure you want to delete {pipeline!r}?", yes):
        return
    _delete_one(get_settings(ctx), EntityKind.PIPELINE, pipeline, CloudClient.delete_pipeline)


@delete_app.command("pipelines")
def delete_pipelines(
    ctx: typer.Context,
    core_instance: str = typer.Option(
        ..., "--core-instance", help="Parent core instance ID or name",
        autocompletion=complete_core_instances,
    ),
    environment: str = typer.Option(
        "", "--environment", help=_ENVIRONMENT_HELP, autocompletion=complete_environments
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help=_YES_HELP),
) -> None:
    """Delete every pipeline of a core instance."""
    settings = get_settings(ctx)

    async def _prefetch():
        async with open_session(settings) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            core_instance_id = await session.resolver.resolve(
                EntityKind.CORE_INSTANCE, core_instance, Scope(environment_id=environment_id)
            )
            return await session.client.list_entities(
                session.project_id,
                EntityKind.PIPELINE,
                ListFilter(scope=Scope(core_instance_id=core_instance_id)),
            )

    pipelines = run(_prefetch())
    if not pipelines:
        console.print("No pipelines to delete")
        return
    if not _confirm_many(pipelines, yes):
        return
    _delete_many(settings, EntityKind.PIPELINE, pipelines, CloudClient.delete_pipeline)


@delete_app.command("fleet")
def delete_fleet(
    ctx: typer.Context,
    fleet: str = typer.Argument(..., metavar="FLEET", autocompletion=complete_fleets),
    yes: bool = typer.Option(False, "--yes", "-y", help=_YES_HELP),
) -> None:
    """Delete a single fleet by ID or name."""
    if not confirm(f"Are you sure you want to delete {fleet!r}?", yes):
        return
    _delete_one(get_settings(ctx), EntityKind.FLEET, fleet, CloudClient.delete_fleet)


@delete_app.command("fleet_file")
def delete_fleet_file(
    ctx: typer.Context,
    fleet: str = typer.Option(..., "--fleet", help="Parent fleet ID or name", autocompletion=complete_fleets),
    name: str = typer.Option(..., "--name", help="File name you want to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help=_YES_HELP),
) -> None:
    """Delete a single file from a fleet by its name."""
    if not confirm(f"Are you sure you want to delete {name!r}?", yes):
        return

    async def _delete() -> None:
        async with open_session(get_settings(ctx)) as session:
            fleet_id = await session.resolver.resolve(EntityKind.FLEET, fleet)
            files = await session.client.list_fleet_files(fleet_id)
            match = next((f for f in files if f.name == name), None)
            if match is None:
                raise EntityNotFoundError(EntityKind.FLEET, f"{fleet}/{name}")
            await session.client.delete_fleet_file(match.id)

    run(_delete())
