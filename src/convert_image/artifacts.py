from __future__ import annotations

import json
from typing import Any

from .contracts import ConvertResult


def serialize_convert_result(result: ConvertResult) -> str:
    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"
