"""Image helpers for flows that take `data:` URIs."""

from __future__ import annotations

import base64
import mimetypes
from pathlib import Path

_FALLBACK_MIME = "application/octet-stream"


def file_to_data_uri(path: Path, *, mime_type: str | None = None) -> str:
    """Read `path` and return it as `data:<mime>;base64,<payload>`."""

    mime = mime_type or mimetypes.guess_type(path.name)[0] or _FALLBACK_MIME
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{payload}"


def is_image_file(path: Path) -> bool:
    mime = mimetypes.guess_type(path.name)[0] or ""
    return mime.startswith("image/")
