from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from landmark_service.domain.models import IngestionResult

PAYLOAD_PREVIEW_CHARS = 60


def _payload_preview(raw_json: Any) -> str:
    """
    Compact one-line preview of a stored payload.

    Landmark payloads hold full keypoint series, so only the top-level keys and
    the start of the JSON text are shown.
    """
    text = json.dumps(raw_json, default=str, separators=(",", ":"))
    if len(text) > PAYLOAD_PREVIEW_CHARS:
        text = text[: PAYLOAD_PREVIEW_CHARS - 1] + "…"
    return text


def print_landmarks(rows: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render landmark rows as a rich table.

    The Type column is shown only for union reads, where rows carry a ``type``.
    """
    console = console or Console()

    if not rows:
        console.print("[yellow]No landmark data found.[/yellow]")
        return

    tagged = any("type" in row for row in rows)
    table = Table(
        title="Landmarks",
        box=box.ROUNDED,
        caption=f"{len(rows)} row(s)",
    )

    table.add_column("ID", justify="right", style="magenta")
    if tagged:
        table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Assessment", justify="right", style="bold green")
    table.add_column("File", style="blue")
    table.add_column("Created", style="dim")
    table.add_column("Payload", overflow="fold")

    for row in rows:
        created = row.get("created_at")
        cells = [str(row.get("id", ""))]
        if tagged:
            cells.append(str(row.get("type", "")))
        cells.extend(
            [
                str(row.get("assessment_id", "")),
                str(row.get("file_name", "")),
                created.isoformat(timespec="seconds") if hasattr(created, "isoformat") else str(created),
                _payload_preview(row.get("raw_json")),
            ]
        )
        table.add_row(*cells)

    console.print(table)


def print_ingestion_result(result: IngestionResult, console: Optional[Console] = None) -> None:
    console = console or Console()
    if result.success:
        console.print(
            f"[green]{result.message}[/green]: {result.landmark_type} "
            f"assessment_id={result.assessment_id} file_name={result.file_name}"
        )
    else:
        console.print(f"[red]{result.message}[/red]: {result.detail}")
