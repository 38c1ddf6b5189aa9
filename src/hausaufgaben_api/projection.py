"""Plain-text rendering of the homework document."""

from __future__ import annotations

import json
from typing import Any

TEXT_HEADER = "Hausaufgaben: \n"


def _stringify(value: Any) -> str:
    # Strings stay bare; everything else uses its JSON spelling.
    if isinstance(value, str):
        return value
    if isinstance(value, dict | list):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(value)


def render_text(document: dict[str, Any]) -> str:
    """Render ``{"math": "p.12"}`` as ``"Hausaufgaben: \\nmath: p.12\\n"``.

    Fields keep the document's insertion order.
    """
    lines = [f"{key}: {_stringify(value)}\n" for key, value in document.items()]
    return TEXT_HEADER + "".join(lines)
