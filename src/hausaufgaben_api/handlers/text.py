"""Handler for ``/api/hausaufgaben/text``: the document as plain text."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from hausaufgaben_api.handlers import require_document
from hausaufgaben_api.policy import read_through
from hausaufgaben_api.projection import render_text

if TYPE_CHECKING:
    from hausaufgaben_api.state import AppState


async def handle(state: AppState) -> str:
    log = structlog.get_logger().bind(handler="hausaufgaben_text")
    read = await read_through(state.cache)
    document = require_document(read)
    log.info("document_served", cached=read.cached, format="text")
    return render_text(document)
