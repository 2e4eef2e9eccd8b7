"""Shell-completion callbacks for entity keys.

Each callback fetches the full listing of one entity kind and offers the
disambiguated keys from build_keys() that start with the typed prefix.
Completion must never break the shell: failures yield no candidates.
"""

import asyncio
import logging
from collections.abc import Callable

import typer
from pydantic import ValidationError

from calyptia_cli.cli.common import get_settings
from calyptia_cli.config import Settings
from calyptia_cli.errors import CalyptiaError
from calyptia_cli.resolve.keys import build_keys
from calyptia_cli.session import open_session
from calyptia_cli.types import EntityKind, ListFilter

logger = logging.getLogger(__name__)


async def fetch_keys(settings: Settings, kind: EntityKind) -> list[str]:
    async with open_session(settings) as session:
        entities = await session.directory.lister(kind)(ListFilter())
    return build_keys(entities)


def _completer(kind: EntityKind) -> Callable[[typer.Context, str], list[str]]:
    def complete(ctx: typer.Context, incomplete: str) -> list[str]:
        try:
            keys = asyncio.run(fetch_keys(get_settings(ctx), kind))
        except (CalyptiaError, ValidationError) as e:
            logger.debug("completion for %s failed: %s", kind.label, e)
            return []
        return [k for k in keys if k.startswith(incomplete)]

    return complete


complete_agents = _completer(EntityKind.AGENT)
complete_core_instances = _completer(EntityKind.CORE_INSTANCE)
complete_pipelines = _completer(EntityKind.PIPELINE)
complete_fleets = _completer(EntityKind.FLEET)
complete_environments = _completer(EntityKind.ENVIRONMENT)
complete_cluster_objects = _completer(EntityKind.CLUSTER_OBJECT)
