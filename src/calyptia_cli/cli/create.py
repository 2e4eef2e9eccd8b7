"""Create commands: register core instances and provision them, attach
pipeline files and start ingest checks."""

from pathlib import Path
from typing import Optional

import typer

from calyptia_cli.cli.common import console, get_settings, run
from calyptia_cli.cli.completion import (
    complete_core_instances,
    complete_environments,
    complete_pipelines,
)
from calyptia_cli.cli.output import OutputFormat, fmt_age, print_json, render_table
from calyptia_cli.k8s.cluster import context_namespace, load_cluster_client
from calyptia_cli.k8s.provision import ProvisionedResourceSet, ProvisioningOrchestrator, ProvisionStep
from calyptia_cli.session import open_session
from calyptia_cli.types import CheckStatus, EntityKind, Scope

create_app = typer.Typer(help="Create core instances, pipeline files and ingest checks")
core_instance_app = typer.Typer(help="Setup a new core instance")
create_app.add_typer(core_instance_app, name="core_instance")

_STEP_LABELS = {
    ProvisionStep.NAMESPACE_ENSURED: "namespace",
    ProvisionStep.CLUSTER_ROLE_CREATED: "cluster role",
    ProvisionStep.SERVICE_ACCOUNT_CREATED: "service account",
    ProvisionStep.CLUSTER_ROLE_BINDING_CREATED: "cluster role binding",
    ProvisionStep.DEPLOYMENT_CREATED: "deployment",
}


def _print_step(step: ProvisionStep, name: str) -> None:
    console.print(f"{_STEP_LABELS[step]}: {name!r}", highlight=False)


def _split_tags(tags: Optional[list[str]]) -> list[str]:
    out: list[str] = []
    for value in tags or []:
        out.extend(t.strip() for t in value.split(",") if t.strip())
    return out


@core_instance_app.command("kubernetes")
def create_core_instance_kubernetes(
    ctx: typer.Context,
    name: str = typer.Option("", "--name", help="Core instance name (autogenerated if empty)"),
    environment: str = typer.Option(
        "", "--environment", help="Calyptia environment ID or name",
        autocompletion=complete_environments,
    ),
    no_healthcheck_pipeline: bool = typer.Option(
        False, "--no-healthcheck-pipeline",
        help="Disable health check pipeline creation alongside the core instance",
    ),
    tags: Optional[list[str]] = typer.Option(None, "--tags", help="Tags to apply to the core instance"),
    kube_namespace: str = typer.Option("", "--kube-namespace", help="Kubernetes namespace"),
    kube_context: str = typer.Option("", "--kube-context", help="Kubeconfig context to use"),
    kubeconfig: str = typer.Option("", "--kubeconfig", help="Path to the kubeconfig file"),
    image: str = typer.Option("", "--image", help="Core workload image"),
) -> None:
    """Setup a new core instance on Kubernetes."""
    settings = get_settings(ctx)

    async def _create() -> ProvisionedResourceSet:
        # Load the cluster config first so a bad kubeconfig fails before
        # anything is registered in the cloud.
        cluster = load_cluster_client(kubeconfig=kubeconfig or None, context=kube_context or None)
        namespace = kube_namespace or context_namespace(
            kubeconfig=kubeconfig or None, context=kube_context or None
        )

        async with open_session(settings) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            created = await session.client.create_core_instance(
                session.project_id,
                name=name,
                environment_id=environment_id,
                add_health_check_pipeline=not no_healthcheck_pipeline,
                tags=_split_tags(tags),
            )
            console.print(f"core instance: {created.name!r} ({created.id})", highlight=False)

            orchestrator = ProvisioningOrchestrator(
                cluster=cluster,
                namespace=namespace,
                project_id=session.project_id,
                project_token=session.project_token,
                cloud_url=session.base_url,
                image=image or settings.core_image,
                on_step=_print_step,
            )
            return await orchestrator.provision(created)

    run(_create())


@create_app.command("pipeline_file")
def create_pipeline_file(
    ctx: typer.Context,
    pipeline: str = typer.Option(
        ..., "--pipeline", help="Parent pipeline ID or name", autocompletion=complete_pipelines
    ),
    file: Path = typer.Option(
        ..., "--file", help="File path. The file name without extension is used as name",
        exists=True, dir_okay=False, readable=True,
    ),
    encrypt: bool = typer.Option(False, "--encrypt", help="Encrypt file contents"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TABLE, "--output-format", "-o", help="Output format"
    ),
) -> None:
    """Add a new file to a pipeline."""
    try:
        contents = file.read_bytes()
    except OSError as e:
        raise typer.BadParameter(f"could not read file: {e}", param_hint="--file") from e

    async def _create():
        async with open_session(get_settings(ctx)) as session:
            pipeline_id = await session.resolver.resolve(EntityKind.PIPELINE, pipeline)
            return await session.client.create_pipeline_file(
                pipeline_id, name=file.stem, contents=contents, encrypted=encrypt
            )

    created = run(_create())
    if output_format == OutputFormat.JSON:
        print_json(created)
        return
    render_table([created], [("ID", lambda f: f.id), ("AGE", lambda f: fmt_age(f.created_at))])


@create_app.command("ingest_check")
def create_ingest_check(
    ctx: typer.Context,
    core_instance: str = typer.Argument(
        ..., metavar="CORE_INSTANCE", autocompletion=complete_core_instances
    ),
    config_section_id: str = typer.Option(
        ..., "--config-section-id", help="Config section ID to check"
    ),
    retries: int = typer.Option(0, "--retries", help="Number of retries", min=0),
    status: Optional[CheckStatus] = typer.Option(None, "--status", help="Initial check status"),
    collect_logs: bool = typer.Option(False, "--collect-logs", help="Collect logs while checking"),
    environment: str = typer.Option(
        "", "--environment", help="Calyptia environment ID or name",
        autocompletion=complete_environments,
    ),
) -> None:
    """Create an ingest check on a core instance and print its ID."""
    if not config_section_id.strip():
        raise typer.BadParameter("invalid config section id", param_hint="--config-section-id")

    async def _create():
        async with open_session(get_settings(ctx)) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            core_instance_id = await session.resolver.resolve(
                EntityKind.CORE_INSTANCE, core_instance, Scope(environment_id=environment_id)
            )
            return await session.client.create_ingest_check(
                core_instance_id,
                config_section_id=config_section_id,
                retries=retries,
                status=status,
                collect_logs=collect_logs,
            )

    print(run(_create()))
