"""Read-only commands: display entities of a project."""

import asyncio
import functools
from typing import Optional

import typer

from calyptia_cli.cli.common import console, get_settings, run
from calyptia_cli.cli.completion import (
    complete_agents,
    complete_core_instances,
    complete_environments,
    complete_fleets,
    complete_pipelines,
)
from calyptia_cli.cli.output import OutputFormat, agent_status, fmt_age, print_json, render_table
from calyptia_cli.k8s.cluster import context_namespace, load_cluster_client
from calyptia_cli.k8s.labels import OwnershipLabel
from calyptia_cli.session import open_session
from calyptia_cli.types import EntityKind, ListFilter, Scope

get_app = typer.Typer(help="Display one or many entities")

_ENVIRONMENT_HELP = "Calyptia environment ID or name"


def _format_option() -> OutputFormat:
    return typer.Option(OutputFormat.TABLE, "--output-format", "-o", help="Output format")


@get_app.command("agents")
def get_agents(
    ctx: typer.Context,
    last: int = typer.Option(0, "--last", "-l", help="Last N agents. 0 means no limit"),
    environment: str = typer.Option(
        "", "--environment", help=_ENVIRONMENT_HELP, autocompletion=complete_environments
    ),
    show_ids: bool = typer.Option(False, "--show-ids", help="Include agent IDs in table output"),
    output_format: OutputFormat = _format_option(),
) -> None:
    """Display latest agents from a project."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            return await session.client.list_entities(
                session.project_id,
                EntityKind.AGENT,
                ListFilter(scope=Scope(environment_id=environment_id), last=last),
            )

    agents = run(_get())
    if output_format == OutputFormat.JSON:
        print_json(agents)
        return

    render_table(
        agents,
        [
            ("NAME", lambda a: a.name),
            ("TYPE", lambda a: a.type),
            ("ENVIRONMENT", lambda a: a.environment_name),
            ("VERSION", lambda a: a.version),
            ("STATUS", lambda a: agent_status(a.last_metrics_added_at)),
            ("AGE", lambda a: fmt_age(a.created_at)),
        ],
        show_ids=show_ids,
    )


@get_app.command("agent")
def get_agent(
    ctx: typer.Context,
    agent_key: str = typer.Argument(..., metavar="AGENT", autocompletion=complete_agents),
    environment: str = typer.Option(
        "", "--environment", help=_ENVIRONMENT_HELP, autocompletion=complete_environments
    ),
    only_config: bool = typer.Option(False, "--only-config", help="Only show the agent configuration"),
    show_ids: bool = typer.Option(False, "--show-ids", help="Include agent ID in table output"),
    output_format: OutputFormat = _format_option(),
) -> None:
    """Display a specific agent."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            agent_id = await session.resolver.resolve(
                EntityKind.AGENT, agent_key, Scope(environment_id=environment_id)
            )
            return await session.client.get_agent(agent_id)

    agent = run(_get())
    if only_config:
        print(agent.raw_config.strip())
        return
    if output_format == OutputFormat.JSON:
        print_json(agent)
        return

    render_table(
        [agent],
        [
            ("NAME", lambda a: a.name),
            ("TYPE", lambda a: a.type),
            ("VERSION", lambda a: a.version),
            ("STATUS", lambda a: agent_status(a.last_metrics_added_at)),
            ("AGE", lambda a: fmt_age(a.created_at)),
        ],
        show_ids=show_ids,
    )


@get_app.command("core_instances")
def get_core_instances(
    ctx: typer.Context,
    last: int = typer.Option(0, "--last", "-l", help="Last N core instances. 0 means no limit"),
    environment: str = typer.Option(
        "", "--environment", help=_ENVIRONMENT_HELP, autocompletion=complete_environments
    ),
    show_ids: bool = typer.Option(False, "--show-ids", help="Include core instance IDs in table output"),
    output_format: OutputFormat = _format_option(),
) -> None:
    """Display latest core instances from a project."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            return await session.client.list_entities(
                session.project_id,
                EntityKind.CORE_INSTANCE,
                ListFilter(scope=Scope(environment_id=environment_id), last=last),
            )

    instances = run(_get())
    if output_format == OutputFormat.JSON:
        print_json(instances)
        return

    render_table(
        instances,
        [
            ("NAME", lambda c: c.name),
            ("ENVIRONMENT", lambda c: c.environment_name),
            ("TAGS", lambda c: ",".join(c.tags)),
            ("AGE", lambda c: fmt_age(c.created_at)),
        ],
        show_ids=show_ids,
    )


@get_app.command("pipelines")
def get_pipelines(
    ctx: typer.Context,
    core_instance: str = typer.Option(
        "", "--core-instance", help="Parent core instance ID or name",
        autocompletion=complete_core_instances,
    ),
    environment: str = typer.Option(
        "", "--environment", help=_ENVIRONMENT_HELP, autocompletion=complete_environments
    ),
    last: int = typer.Option(0, "--last", "-l", help="Last N pipelines. 0 means no limit"),
    show_ids: bool = typer.Option(False, "--show-ids", help="Include pipeline IDs in table output"),
    output_format: OutputFormat = _format_option(),
) -> None:
    """Display latest pipelines from a project or core instance."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            core_instance_id = await session.resolver.resolve_optional(
                EntityKind.CORE_INSTANCE, core_instance, Scope(environment_id=environment_id)
            )
            return await session.client.list_entities(
                session.project_id,
                EntityKind.PIPELINE,
                ListFilter(scope=Scope(core_instance_id=core_instance_id), last=last),
            )

    pipelines = run(_get())
    if output_format == OutputFormat.JSON:
        print_json(pipelines)
        return

    render_table(
        pipelines,
        [
            ("NAME", lambda p: p.name),
            ("REPLICAS", lambda p: str(p.replicas_count)),
            ("STATUS", lambda p: p.status),
            ("AGE", lambda p: fmt_age(p.created_at)),
        ],
        show_ids=show_ids,
    )


@get_app.command("fleets")
def get_fleets(
    ctx: typer.Context,
    last: int = typer.Option(0, "--last", "-l", help="Last N fleets. 0 means no limit"),
    show_ids: bool = typer.Option(False, "--show-ids", help="Include fleet IDs in table output"),
    output_format: OutputFormat = _format_option(),
) -> None:
    """Display fleets from a project."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            return await session.client.list_entities(
                session.project_id, EntityKind.FLEET, ListFilter(last=last)
            )

    fleets = run(_get())
    if output_format == OutputFormat.JSON:
        print_json(fleets)
        return

    render_table(
        fleets,
        [
            ("NAME", lambda f: f.name),
            ("TAGS", lambda f: ",".join(f.tags)),
            ("AGE", lambda f: fmt_age(f.created_at)),
        ],
        show_ids=show_ids,
    )


@get_app.command("fleet_files")
def get_fleet_files(
    ctx: typer.Context,
    fleet: str = typer.Option(..., "--fleet", help="Parent fleet ID or name", autocompletion=complete_fleets),
    output_format: OutputFormat = _format_option(),
) -> None:
    """Display the files of a fleet."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            fleet_id = await session.resolver.resolve(EntityKind.FLEET, fleet)
            return await session.client.list_fleet_files(fleet_id)

    files = run(_get())
    if output_format == OutputFormat.JSON:
        print_json(files)
        return

    render_table(
        files,
        [("ID", lambda f: f.id), ("NAME", lambda f: f.name), ("AGE", lambda f: fmt_age(f.created_at))],
    )


@get_app.command("environments")
def get_environments(
    ctx: typer.Context,
    last: int = typer.Option(0, "--last", "-l", help="Last N environments. 0 means no limit"),
    show_ids: bool = typer.Option(False, "--show-ids", help="Include environment IDs in table output"),
    output_format: OutputFormat = _format_option(),
) -> None:
    """Display environments from a project."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            return await session.client.list_entities(
                session.project_id, EntityKind.ENVIRONMENT, ListFilter(last=last)
            )

    environments = run(_get())
    if output_format == OutputFormat.JSON:
        print_json(environments)
        return

    render_table(
        environments,
        [("NAME", lambda e: e.name), ("AGE", lambda e: fmt_age(e.created_at))],
        show_ids=show_ids,
    )


@get_app.command("core_instance_deployments")
def get_core_instance_deployments(
    ctx: typer.Context,
    core_instance: str = typer.Argument(
        ..., metavar="CORE_INSTANCE", autocompletion=complete_core_instances
    ),
    environment: str = typer.Option(
        "", "--environment", help=_ENVIRONMENT_HELP, autocompletion=complete_environments
    ),
    kube_namespace: str = typer.Option("", "--kube-namespace", help="Kubernetes namespace"),
    kube_context: str = typer.Option("", "--kube-context", help="Kubeconfig context to use"),
    kubeconfig: str = typer.Option("", "--kubeconfig", help="Path to the kubeconfig file"),
) -> None:
    """Display the Kubernetes deployments created for a core instance."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            core_instance_id = await session.resolver.resolve(
                EntityKind.CORE_INSTANCE, core_instance, Scope(environment_id=environment_id)
            )
            owner = OwnershipLabel(project_id=session.project_id, entity_id=core_instance_id)

        cluster = load_cluster_client(kubeconfig=kubeconfig or None, context=kube_context or None)
        namespace = kube_namespace or context_namespace(
            kubeconfig=kubeconfig or None, context=kube_context or None
        )
        loop = asyncio.get_running_loop()
        deployments = await loop.run_in_executor(
            None, functools.partial(cluster.list_deployments, namespace, owner.selector())
        )
        return [
            d for d in deployments
            if OwnershipLabel.from_labels(d.metadata.labels) == owner
        ]

    deployments = run(_get())
    if not deployments:
        console.print("No deployments found")
        return

    render_table(
        deployments,
        [
            ("NAME", lambda d: d.metadata.name),
            ("NAMESPACE", lambda d: d.metadata.namespace or "-"),
            ("READY", lambda d: f"{(d.status and d.status.ready_replicas) or 0}/{d.spec.replicas}"),
            ("AGE", lambda d: fmt_age(d.metadata.creation_timestamp)),
        ],
    )


@get_app.command("endpoints")
def get_endpoints(
    ctx: typer.Context,
    pipeline: str = typer.Option(
        ..., "--pipeline", help="Parent pipeline ID or name", autocompletion=complete_pipelines
    ),
    last: int = typer.Option(0, "--last", "-l", help="Last N pipeline endpoints. 0 means no limit"),
    show_ids: bool = typer.Option(False, "--show-ids", help="Include endpoint IDs in table output"),
    output_format: OutputFormat = _format_option(),
) -> None:
    """Display latest endpoints from a pipeline."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            pipeline_id = await session.resolver.resolve(EntityKind.PIPELINE, pipeline)
            return await session.client.list_pipeline_ports(pipeline_id, last=last)

    ports = run(_get())
    if output_format == OutputFormat.JSON:
        print_json(ports)
        return

    render_table(
        ports,
        [
            ("PROTOCOL", lambda p: p.protocol),
            ("FRONTEND-PORT", lambda p: str(p.frontend_port)),
            ("BACKEND-PORT", lambda p: str(p.backend_port)),
            ("ENDPOINT", lambda p: p.endpoint or "Pending"),
            ("AGE", lambda p: fmt_age(p.created_at)),
        ],
        show_ids=show_ids,
    )


@get_app.command("core_instance_secrets")
def get_core_instance_secrets(
    ctx: typer.Context,
    core_instance: str = typer.Option(
        ..., "--core-instance", help="Core instance ID or name",
        autocompletion=complete_core_instances,
    ),
    last: Optional[int] = typer.Option(None, "--last", "-l", help="Retrieve the last N secrets"),
    before: Optional[str] = typer.Option(None, "--before", help="Retrieve secrets before the given cursor"),
    output_format: OutputFormat = _format_option(),
) -> None:
    """List secrets from a core instance with backward pagination."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            core_instance_id = await session.resolver.resolve(EntityKind.CORE_INSTANCE, core_instance)
            page = await session.client.list_core_instance_secrets(
                core_instance_id, last=last, before=before
            )
            return core_instance_id, page

    core_instance_id, page = run(_get())
    if output_format == OutputFormat.JSON:
        print_json(page)
        return

    if not page.items:
        console.print("End reached." if before is not None else "No core instance secrets found.")
        return

    render_table(
        page.items,
        [("ID", lambda s: s.id), ("KEY", lambda s: s.key), ("AGE", lambda s: fmt_age(s.created_at))],
    )
    console.print(f"Count: {page.count}", highlight=False)
    if page.end_cursor is not None:
        console.print(
            "Next page:\n\tcalyptia get core_instance_secrets "
            f"--core-instance {core_instance_id} --before {page.end_cursor}",
            highlight=False,
            soft_wrap=True,
        )


@get_app.command("ingest_check_logs")
def get_ingest_check_logs(
    ctx: typer.Context,
    ingest_check_id: str = typer.Argument(..., metavar="INGEST_CHECK_ID"),
) -> None:
    """Display the logs collected by an ingest check."""

    async def _get():
        async with open_session(get_settings(ctx)) as session:
            return await session.client.get_ingest_check(ingest_check_id)

    check = run(_get())
    print(check.logs)
