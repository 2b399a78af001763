"""SnapVerse command line.

One command per content flow plus the admin workflows (`review`, `search`).
Every command builds a `FlowRunner` from settings, runs one invocation and
disposes the runner.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape

from adapters.json_exporter import export_record_json
from adapters.media import file_to_data_uri, is_image_file
from adapters.report_exporter import export_blog_post_html
from cli.doctor import app as doctor_app
from cli.ui_components import (
    build_flows_table,
    build_photos_table,
    build_record_panel,
    build_review_panel,
    print_banner,
)
from core.config import AppSettings
from core.domain.errors import FlowError
from core.domain.models import GenerateBlogPostOutput, Photo, SetupCorsOutput
from core.flows import (
    customize_theme,
    generate_blog_post,
    generate_caption,
    generate_service_description,
    moderate_image,
    setup_cors,
)
from core.logging_config import configure_logging
from core.services.content_pipeline import (
    DEFAULT_THEME_REQUEST,
    review_upload,
    search_portfolio,
    tidy_blog_post,
)
from core.services.flow_runner import FlowRunner

app = typer.Typer(no_args_is_help=True, help="AI content helpers for the SnapVerse photography site.")
app.add_typer(doctor_app, name="doctor")

_console = Console()

T = TypeVar("T")

_PhotoList = TypeAdapter(list[Photo])

JsonOption = typer.Option(False, "--json", help="Print the raw JSON result.")
OutputOption = typer.Option(None, "--output", "-o", help="Also write the JSON result to this file.")


def build_runner(settings: AppSettings) -> FlowRunner:
    return FlowRunner.from_settings(settings)


def _run(action: Callable[[FlowRunner], Awaitable[T]]) -> T:
    """Run `action` against a fresh runner and turn flow errors into exit code 1."""

    settings = AppSettings()

    async def _main() -> T:
        async with build_runner(settings) as runner:
            return await action(runner)

    try:
        return asyncio.run(_main())
    except FlowError as exc:
        _console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _emit(title: str, record: BaseModel, *, as_json: bool, output: Optional[Path]) -> None:
    if output is not None:
        path = export_record_json(record=record, output_path=output)
        if not as_json:
            _console.print(f"[green]Saved JSON to:[/green] {path}")
    if as_json:
        _console.print_json(data=record.model_dump(mode="json", by_alias=True))
        return
    _console.print(build_record_panel(title, record))


def _image_uri(path: Path) -> str:
    if not is_image_file(path):
        raise typer.BadParameter(f"{path} does not look like an image file")
    try:
        return file_to_data_uri(path)
    except OSError as exc:
        raise typer.BadParameter(f"cannot read image {path}: {exc}") from exc


def _load_photos(path: Path) -> list[Photo]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"cannot read photos file {path}: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("photos", [])
    try:
        return _PhotoList.validate_python(data)
    except PydanticValidationError as exc:
        raise typer.BadParameter(f"invalid photos file {path}: {exc.errors()[0]['msg']}") from exc


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def banner() -> None:
    """Show the banner and the configured model."""

    settings = AppSettings()
    print_banner(_console)
    _console.print(f"Model: [cyan]{settings.ai_model}[/cyan] @ {settings.ai_base_url}", style="dim")


@app.command()
def flows() -> None:
    """List the registered flows."""

    async def _list(runner: FlowRunner) -> None:
        _console.print(build_flows_table(runner.registry))

    _run(_list)


@app.command()
def moderate(
    photo: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image file to moderate."),
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Check whether an image is appropriate for the portfolio."""

    data = {"photo_data_uri": _image_uri(photo)}
    result = _run(lambda runner: moderate_image(runner, data))
    _emit("Moderation", result, as_json=as_json, output=output)


@app.command()
def caption(
    photo: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image file to caption."),
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Generate a title and description for an image."""

    data = {"photo_data_uri": _image_uri(photo)}
    result = _run(lambda runner: generate_caption(runner, data))
    _emit("Caption", result, as_json=as_json, output=output)


@app.command()
def review(
    photo: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image file being uploaded."),
    no_caption: bool = typer.Option(False, "--no-caption", help="Only run moderation."),
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Moderate an upload and caption it when approved."""

    uri = _image_uri(photo)
    result = _run(lambda runner: review_upload(runner, photo_data_uri=uri, with_caption=not no_caption))
    if output is not None:
        export_record_json(record=result, output_path=output)
    if as_json:
        _console.print_json(data=result.model_dump(mode="json", by_alias=True))
    else:
        _console.print(build_review_panel(result))
    if not result.approved:
        raise typer.Exit(code=2)


@app.command()
def search(
    query: str = typer.Argument(..., help="Natural-language search query (empty matches everything)."),
    photos: Path = typer.Option(..., "--photos", "-p", exists=True, dir_okay=False, help="JSON list of photos."),
    as_json: bool = JsonOption,
) -> None:
    """Search the portfolio with a natural-language query."""

    catalogue = _load_photos(photos)
    found = _run(lambda runner: search_portfolio(runner, query=query, photos=catalogue))
    if as_json:
        _console.print_json(data={"photoIds": [p.id for p in found]})
        return
    if not found:
        _console.print("[yellow]No results:[/yellow] no photos match the search.")
        return
    _console.print(build_photos_table(found))


@app.command()
def theme(
    primary: str = typer.Option(DEFAULT_THEME_REQUEST.primary_color, "--primary", help="Primary colour (hex)."),
    background: str = typer.Option(DEFAULT_THEME_REQUEST.background_color, "--background", help="Background colour (hex)."),
    accent: str = typer.Option(DEFAULT_THEME_REQUEST.accent_color, "--accent", help="Accent colour (hex)."),
    headline_font: str = typer.Option(DEFAULT_THEME_REQUEST.headline_font, "--headline-font"),
    body_font: str = typer.Option(DEFAULT_THEME_REQUEST.body_font, "--body-font"),
    style: Optional[str] = typer.Option(DEFAULT_THEME_REQUEST.style_description, "--style", help="Desired aesthetic."),
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Suggest an updated colour palette and font pairing."""

    data = {
        "primary_color": primary,
        "background_color": background,
        "accent_color": accent,
        "headline_font": headline_font,
        "body_font": body_font,
        "style_description": style,
    }
    result = _run(lambda runner: customize_theme(runner, data))
    _emit("Theme suggestion", result, as_json=as_json, output=output)


@app.command()
def service(
    title: str = typer.Argument(..., help="Service title, e.g. 'Wedding Package'."),
    keywords: Optional[str] = typer.Option(None, "--keywords", "-k", help="Comma-separated keywords."),
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Write the description and features of a photography package."""

    data = {"title": title, "keywords": keywords}
    result = _run(lambda runner: generate_service_description(runner, data))
    _emit("Service", result, as_json=as_json, output=output)


@app.command()
def blog(
    topic: str = typer.Argument(..., help="Topic or working title of the post."),
    photo: Optional[Path] = typer.Option(None, "--photo", exists=True, dir_okay=False, help="Inspiration image."),
    html: Optional[Path] = typer.Option(None, "--html", help="Write an HTML preview of the post."),
    as_json: bool = JsonOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Draft a blog post (title, slug, excerpt and HTML content)."""

    data = {"topic": topic, "photo_data_uri": _image_uri(photo) if photo else None}
    result: GenerateBlogPostOutput = tidy_blog_post(_run(lambda runner: generate_blog_post(runner, data)))
    if html is not None:
        path = export_blog_post_html(post=result, output_path=html)
        if not as_json:
            _console.print(f"[green]Saved HTML preview to:[/green] {path}")
    _emit("Blog post", result, as_json=as_json, output=output)


@app.command()
def cors(
    bucket: str = typer.Argument(..., help="Storage bucket name."),
    origin: str = typer.Argument(..., help="Origin allowed to access the bucket, e.g. https://my-app.com"),
    as_json: bool = JsonOption,
) -> None:
    """Apply the site's CORS rule to a storage bucket."""

    data = {"bucket_name": bucket, "origin": origin}
    result: SetupCorsOutput = _run(lambda runner: setup_cors(runner, data))
    if as_json:
        _console.print_json(data=result.model_dump(mode="json", by_alias=True))
    elif result.success:
        _console.print(f"[green]{escape(result.message)}[/green]")
    else:
        _console.print(f"[bold red]CORS setup failed:[/bold red] {escape(result.message)}")
    if not result.success:
        raise typer.Exit(code=1)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
