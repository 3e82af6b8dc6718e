from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .contracts import LayoutResult


def serialize_layout_result(result: LayoutResult) -> str:
    payload: dict[str, Any] = result.to_dict()
    # Absolute output paths vary between hosts; keep the manifest stable.
    payload["out_file"] = Path(result.out_file).name
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_layout_manifest_json(*, result: LayoutResult, out_manifest: Path) -> None:
    out_manifest.parent.mkdir(parents=True, exist_ok=True)
    out_manifest.write_text(serialize_layout_result(result), encoding="utf-8")
