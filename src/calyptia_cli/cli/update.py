"""Update commands."""

import typer

from calyptia_cli.cli.common import get_settings, run
from calyptia_cli.cli.completion import (
    complete_cluster_objects,
    complete_environments,
    complete_pipelines,
)
from calyptia_cli.session import open_session
from calyptia_cli.types import EntityKind, Scope

update_app = typer.Typer(help="Update pipelines and their relations")


@update_app.command("pipeline_cluster_object")
def update_pipeline_cluster_object(
    ctx: typer.Context,
    pipeline: str = typer.Option(
        ..., "--pipeline", help="Parent pipeline ID or name", autocompletion=complete_pipelines
    ),
    cluster_object: str = typer.Option(
        ..., "--cluster-object", help="The cluster object ID or name",
        autocompletion=complete_cluster_objects,
    ),
    environment: str = typer.Option(
        "", "--environment", help="Calyptia environment ID or name",
        autocompletion=complete_environments,
    ),
) -> None:
    """Attach a cluster object to a pipeline by its name or ID."""

    async def _update() -> None:
        async with open_session(get_settings(ctx)) as session:
            environment_id = await session.resolver.resolve_optional(
                EntityKind.ENVIRONMENT, environment
            )
            pipeline_id = await session.resolver.resolve(EntityKind.PIPELINE, pipeline)
            cluster_object_id = await session.resolver.resolve(
                EntityKind.CLUSTER_OBJECT, cluster_object, Scope(environment_id=environment_id)
            )
            await session.client.update_pipeline_cluster_objects(pipeline_id, [cluster_object_id])

    run(_update())
