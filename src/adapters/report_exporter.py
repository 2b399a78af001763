"""HTML preview of generated blog posts.

Lives in adapters because HTML rendering (Jinja2) is infrastructure; the core
only knows the `GenerateBlogPostOutput` record.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.domain.models import GenerateBlogPostOutput, Theme

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_blog_post_html(
    *,
    post: GenerateBlogPostOutput,
    theme: Theme | None = None,
    site_name: str = "SnapVerse",
) -> str:
    """Render a self-contained HTML page for a generated post.

    The post body is already HTML and is inserted unescaped; title and excerpt
    are escaped.
    """

    generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    template = _get_env().get_template("blog_post.html")
    return template.render(
        post=post,
        theme=theme or Theme(),
        site_name=site_name,
        generated_at=generated_at,
    )


def export_blog_post_html(
    *,
    post: GenerateBlogPostOutput,
    output_path: Path,
    theme: Theme | None = None,
) -> Path:
    """Write the preview page to `output_path`."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_blog_post_html(post=post, theme=theme), encoding="utf-8")
    return output_path
