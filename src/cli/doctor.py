"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import google.auth
import typer
from google.auth.exceptions import DefaultCredentialsError
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

PRESETS: dict[str, dict[str, str]] = {
    "gemini": {
        "SNAPVERSE_AI_BASE_URL": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "SNAPVERSE_AI_MODEL": "gemini-2.0-flash",
    },
    "openai": {"SNAPVERSE_AI_BASE_URL": "https://api.openai.com/v1", "SNAPVERSE_AI_MODEL": "gpt-4o-mini"},
    "openrouter": {"SNAPVERSE_AI_BASE_URL": "https://openrouter.ai/api/v1", "SNAPVERSE_AI_MODEL": "openai/gpt-4o-mini"},
    # Vision models only; text-only models cannot run moderation or captions.
    "groq": {
        "SNAPVERSE_AI_BASE_URL": "https://api.groq.com/openai/v1",
        "SNAPVERSE_AI_MODEL": "meta-llama/llama-4-scout-17b-16e-instruct",
    },
    "ollama": {"SNAPVERSE_AI_BASE_URL": "http://localhost:11434/v1", "SNAPVERSE_AI_MODEL": "llava"},
}


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or type(exc).__name__


def _check_google_credentials() -> tuple[bool, str]:
    try:
        _credentials, project = google.auth.default()
    except DefaultCredentialsError as exc:
        return False, str(exc).splitlines()[0]
    return True, f"project={project or 'unknown'}"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="SnapVerse Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    if settings.ai_api_key:
        table.add_row("AI key", "OK", "Model-backed flows enabled")
    else:
        table.add_row("AI key", "MISSING", "Set SNAPVERSE_AI_API_KEY or run `doctor setup-ai`")
    table.add_row("AI base_url", "OK", settings.ai_base_url)
    table.add_row("AI model", "OK", settings.ai_model)

    ok_http, detail_http = asyncio.run(_check_http(settings.ai_base_url, settings))
    table.add_row("AI endpoint", "OK" if ok_http else "FAIL", detail_http)

    ok_gcp, detail_gcp = _check_google_credentials()
    table.add_row("Google credentials", "OK" if ok_gcp else "OPTIONAL", detail_gcp)

    _console.print(table)

    if not ok_gcp:
        _console.print(
            "\n[yellow]Note:[/yellow] `cors` needs application default credentials "
            "(`gcloud auth application-default login`)."
        )


@app.command(name="setup-ai")
def setup_ai() -> None:
    """Interactive AI setup (stores config in the user config .env)."""

    provider = typer.prompt(
        "AI provider",
        default="gemini",
        show_default=True,
    ).strip().lower()

    values = PRESETS.get(provider, {}).copy()
    if not values:
        _console.print("[yellow]Unknown provider preset. You can still enter custom values.[/yellow]")

    base_url = typer.prompt("AI base URL", default=values.get("SNAPVERSE_AI_BASE_URL", ""), show_default=True).strip()
    model = typer.prompt("AI model", default=values.get("SNAPVERSE_AI_MODEL", ""), show_default=True).strip()
    api_key = typer.prompt("AI API key", hide_input=True, confirmation_prompt=False).strip()

    if not base_url or not model:
        raise typer.BadParameter("base_url and model are required")

    env_path = write_user_env_vars(
        {
            "SNAPVERSE_AI_BASE_URL": base_url,
            "SNAPVERSE_AI_MODEL": model,
            "SNAPVERSE_AI_API_KEY": api_key,
        }
    )

    _console.print(f"[green]Saved AI config to:[/green] {env_path}")
