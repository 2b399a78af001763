"""Rich UI components for the CLI.

Kept apart from the commands so tables and panels can be reused and so the
commands stay free of presentation details.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Photo, UploadReview
from core.services.flow_runner import FlowRegistry


def print_banner(console: Console) -> None:
    """Print the welcome banner (skipped in JSON mode)."""

    title = Text("SnapVerse", style="bold magenta")
    subtitle = Text("Portfolio content • Moderation • AI copy", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="magenta", padding=(1, 4)))


def build_flows_table(registry: FlowRegistry) -> Table:
    table = Table(title="Content flows")
    table.add_column("Flow", style="cyan", no_wrap=True)
    table.add_column("Kind", style="white")
    table.add_column("Input", style="green")
    table.add_column("Output", style="green")
    table.add_column("Description", style="dim")
    for definition in registry:
        table.add_row(
            definition.name,
            "model" if definition.uses_model else "utility",
            definition.input_schema.__name__,
            definition.output_schema.__name__,
            definition.description,
        )
    return table


def _format_value(value: object) -> str:
    if isinstance(value, list):
        return "\n".join(f"- {item}" for item in value) or "(none)"
    if value is None or value == "":
        return "(none)"
    return str(value)


def build_record_panel(title: str, record: BaseModel, *, border_style: str = "cyan") -> Panel:
    """Key/value panel for any flow output record."""

    body = Text()
    for name in type(record).model_fields:
        label = name.replace("_", " ").capitalize()
        body.append(f"{label}: ", style="bold")
        body.append(_format_value(getattr(record, name)) + "\n")
    return Panel(body, title=Text(title, style="bold"), border_style=border_style)


def build_review_panel(review: UploadReview) -> Panel:
    body = Text()
    if review.approved:
        body.append("Approved\n", style="bold green")
    else:
        body.append("Rejected\n", style="bold red")
        body.append(f"Reason: {review.moderation.reason or 'The image was flagged as inappropriate.'}\n")
    if review.caption:
        body.append("\nTitle: ", style="bold")
        body.append(review.caption.title + "\n")
        body.append("Description: ", style="bold")
        body.append(review.caption.description + "\n")
    elif review.caption_error:
        body.append(f"\nCaptioning failed: {review.caption_error}\n", style="yellow")
    return Panel(body, title=Text("Upload review", style="bold"), border_style="green" if review.approved else "red")


def build_photos_table(photos: Iterable[Photo], *, title: str = "Matching photos") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Size", style="dim", justify="right")
    table.add_column("URL", style="magenta")
    for photo in photos:
        size = f"{photo.width}x{photo.height}" if photo.width and photo.height else "-"
        table.add_row(photo.id, photo.title or "(untitled)", size, photo.url)
    return table
