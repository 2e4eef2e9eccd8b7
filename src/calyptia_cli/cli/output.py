"""Table and JSON rendering for command output."""

import dataclasses
import json
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from rich.table import Table

from calyptia_cli.cli.common import console

# Agents that have not sent metrics for this long are reported inactive.
AGENT_ACTIVE_WINDOW = timedelta(minutes=5)


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


def print_json(data: Any) -> None:
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        data = dataclasses.asdict(data)
    elif isinstance(data, (list, tuple)):
        data = [dataclasses.asdict(d) if dataclasses.is_dataclass(d) else d for d in data]
    print(json.dumps(data, indent=2, default=str))


def fmt_age(ts: datetime | None, now: datetime | None = None) -> str:
    """Largest whole unit elapsed since ts, e.g. "10 minutes"."""
    if ts is None:
        return "-"
    now = now or datetime.now(timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    seconds = max(int((now - ts).total_seconds()), 0)
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            n = seconds // size
            return f"{n} {unit}" if n == 1 else f"{n} {unit}s"
    return f"{seconds} seconds"


def is_agent_active(last_metrics_added_at: datetime | None, now: datetime | None = None) -> bool:
    """True if the agent sent metrics within AGENT_ACTIVE_WINDOW."""
    if last_metrics_added_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    if last_metrics_added_at.tzinfo is None:
        last_metrics_added_at = last_metrics_added_at.replace(tzinfo=timezone.utc)
    return last_metrics_added_at >= now - AGENT_ACTIVE_WINDOW


def agent_status(last_metrics_added_at: datetime | None, now: datetime | None = None) -> str:
    if last_metrics_added_at is None:
        return "inactive"
    now = now or datetime.now(timezone.utc)
    if is_agent_active(last_metrics_added_at, now):
        return "active"
    return f"inactive for {fmt_age(last_metrics_added_at, now)}"


def render_table(
    rows: Sequence[Any],
    columns: Sequence[tuple[str, Callable[[Any], str]]],
    *,
    show_ids: bool = False,
    title: str | None = None,
) -> None:
    """Render rows as a rich table. An ID column is prepended with show_ids."""
    if show_ids:
        columns = [("ID", lambda r: r.id), *columns]

    table = Table(title=title)
    for header, _ in columns:
        table.add_column(header, style="cyan" if header == "ID" else None)
    for row in rows:
        table.add_row(*(getter(row) for _, getter in columns))
    console.print(table)
