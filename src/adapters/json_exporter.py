"""JSON export of flow results.

- Keeps the camelCase wire names so the web admin can load the file as-is.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel


def export_record_json(*, record: BaseModel, output_path: Path) -> Path:
    """Write `record` as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = record.model_dump(mode="json", by_alias=True)
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
