"""PixelPrompt — FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI function
that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`~pixelprompt.core.config.config`
  (``PIXELPROMPT_*`` environment variables).
- **Image generation** is delegated to
  :class:`~pixelprompt.core.orchestrator.GenerationOrchestrator`, which calls
  the external model through
  :class:`~pixelprompt.core.generation_client.ImageGenerationClient`.
- **Persistence** uses a :class:`~pixelprompt.core.storage.RecordStore` over
  JSON files in the data directory — no database required.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/api/generate``             Generate one image from a prompt
GET       ``/api/styles``               Style preset catalog
GET       ``/api/history``              Filtered, sorted, paginated records
GET       ``/api/history/stats``        Record counts by status and style
GET       ``/api/history/{id}``         Single record
DELETE    ``/api/history/{id}``         Delete one record
DELETE    ``/api/history``              Delete all records
GET       ``/api/settings``             Current settings
PUT       ``/api/settings``             Merge a settings update
GET       ``/api/export``               Download a JSON snapshot
POST      ``/api/import``               Replace records from a snapshot
GET       ``/api/connection``           Check the external endpoint
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    pixelprompt

Direct invocation::

    python -m pixelprompt.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from pixelprompt import __version__
from pixelprompt.api.models import GenerateRequest, SettingsUpdate
from pixelprompt.core import styles
from pixelprompt.core.config import config
from pixelprompt.core.errors import PromptValidationError
from pixelprompt.core.generation_client import ImageGenerationClient
from pixelprompt.core.history import (
    filter_records,
    history_stats,
    paginate_records,
    sort_records,
)
from pixelprompt.core.orchestrator import GenerationOrchestrator
from pixelprompt.core.records import GenerationStatus, now_ms
from pixelprompt.core.storage import JsonFileBackend, RecordStore

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate"


# ---------------------------------------------------------------------------
# Application lifecycle — store and orchestrator setup.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the shared record store and orchestrator on startup.

    Both live on ``app.state`` so route handlers (and tests) can reach or
    replace them.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    store = RecordStore(
        JsonFileBackend(config.data_dir),
        default_max_images=config.default_max_images,
    )
    app.state.store = store
    app.state.orchestrator = GenerationOrchestrator(
        ImageGenerationClient.from_config(config),
        store,
        max_prompt_length=config.max_prompt_length,
    )
    logger.info(f"Record store ready in {config.data_dir}")

    yield


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="PixelPrompt",
    description="Text-to-image generation with a local generation history.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _failure(error: str, record_id: str | None, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": error, "id": record_id or f"error_{now_ms()}"},
        status_code=status_code,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> Response:
    """Report unparseable generate bodies with the endpoint's 400 shape.

    Every other route keeps FastAPI's default 422 response.
    """
    if request.url.path == GENERATE_PATH:
        return _failure("Invalid request body", None, 400)
    return await request_validation_exception_handler(request, exc)


# ---------------------------------------------------------------------------
# Generation.
# ---------------------------------------------------------------------------


@app.post(GENERATE_PATH)
async def generate_image(req: GenerateRequest) -> JSONResponse:
    """Generate a single image.

    Returns:
        ``200`` with ``{success, imageUrl, id}`` on success, ``400`` with
        ``{success, error, id}`` when the prompt is rejected, and ``500``
        with the same shape when generation fails.
    """
    orchestrator: GenerationOrchestrator = app.state.orchestrator
    try:
        record = await orchestrator.generate(
            req.prompt,
            style=req.style,
            system_prompt=req.system_prompt,
        )
    except PromptValidationError as e:
        return _failure(str(e), None, 400)
    except Exception:
        logger.exception("Generate route failed")
        return _failure("Internal server error", None, 500)

    if record.status is GenerationStatus.COMPLETED:
        return JSONResponse({"success": True, "imageUrl": record.url, "id": record.id})
    return _failure(record.error or "Unknown error occurred", record.id, 500)


@app.api_route(GENERATE_PATH, methods=["GET", "PUT", "PATCH", "DELETE"])
async def generate_method_not_allowed() -> JSONResponse:
    """Reject every method except POST on the generate path."""
    return JSONResponse({"error": "Method not allowed"}, status_code=405)


# ---------------------------------------------------------------------------
# Styles.
# ---------------------------------------------------------------------------


@app.get("/api/styles")
async def get_styles() -> dict:
    """Return the style catalog in declaration order and the default style id."""
    return {
        "styles": [preset.model_dump(by_alias=True) for preset in styles.list_all()],
        "default": styles.default_style().id,
    }


# ---------------------------------------------------------------------------
# History.
# ---------------------------------------------------------------------------


@app.get("/api/history")
async def get_history(
    search: str | None = None,
    style: str = "all",
    status: str = "all",
    sort_by: str = "newest",
    limit: int = 0,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """Return a filtered, sorted, paginated listing of generation records.

    Args:
        search: Case-insensitive substring of the prompt.
        style: Style identifier, or ``"all"``.
        status: ``generating``, ``completed``, ``error``, or ``"all"``.
        sort_by: ``newest``, ``oldest``, or ``prompt``.
        limit: Keep only the first *limit* records after sorting (0 = no limit).
        page: Page number (1-indexed).
        per_page: Number of records per page.

    Raises:
        HTTPException: 400 for an unknown ``sort_by`` or a non-positive ``per_page``.
    """
    if per_page < 1:
        raise HTTPException(status_code=400, detail="per_page must be at least 1")

    store: RecordStore = app.state.store
    records = filter_records(store.list(), search=search, style=style, status=status)
    try:
        records = sort_records(records, sort_by)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if limit > 0:
        records = records[:limit]

    result = paginate_records(records, page, per_page)
    result["records"] = [r.to_dict() for r in result["records"]]
    return result


@app.get("/api/history/stats")
async def get_history_stats() -> dict:
    """Return record counts in total, per status, and per style."""
    store: RecordStore = app.state.store
    return history_stats(store.list())


@app.get("/api/history/{record_id}")
async def get_record(record_id: str) -> dict:
    """Return a single record.

    Raises:
        HTTPException: 404 if no record has this id.
    """
    store: RecordStore = app.state.store
    record = store.get_by_id(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return record.to_dict()


@app.delete("/api/history/{record_id}")
async def delete_record(record_id: str) -> dict:
    """Delete one record.  Deleting an unknown id is not an error."""
    store: RecordStore = app.state.store
    deleted = store.delete(record_id)
    return {"success": True, "id": record_id, "deleted": deleted}


@app.delete("/api/history")
async def clear_history() -> dict:
    """Delete every record.  Settings are kept."""
    store: RecordStore = app.state.store
    store.clear()
    return {"success": True}


# ---------------------------------------------------------------------------
# Settings.
# ---------------------------------------------------------------------------


@app.get("/api/settings")
async def get_settings() -> dict:
    store: RecordStore = app.state.store
    return store.get_settings().to_dict()


@app.put("/api/settings")
async def update_settings(req: SettingsUpdate) -> dict:
    """Merge the supplied fields onto the saved settings.

    Raises:
        HTTPException: 400 if the merged settings are invalid (for example an
            unknown ``defaultStyle``).
    """
    store: RecordStore = app.state.store
    try:
        updated = store.save_settings(req.model_dump(exclude_none=True))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors()[0]["msg"]) from e
    return updated.to_dict()


# ---------------------------------------------------------------------------
# Export / import.
# ---------------------------------------------------------------------------


@app.get("/api/export")
async def export_snapshot() -> Response:
    """Download every record and the settings as one JSON document."""
    store: RecordStore = app.state.store
    return Response(
        content=store.export_snapshot(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{store.export_filename()}"'},
    )


@app.post("/api/import")
async def import_snapshot(request: Request) -> JSONResponse:
    """Replace the record list (and merge settings) from an exported snapshot.

    The request body is the raw JSON document produced by ``/api/export``.
    A rejected snapshot leaves the stored data untouched.
    """
    store: RecordStore = app.state.store
    result = store.import_snapshot(await request.body())
    return JSONResponse(
        result.model_dump(exclude_none=True),
        status_code=200 if result.success else 400,
    )


# ---------------------------------------------------------------------------
# Connectivity.
# ---------------------------------------------------------------------------


@app.get("/api/connection")
async def check_connection() -> dict:
    """Report whether the external image endpoint answers a trivial prompt."""
    orchestrator: GenerationOrchestrator = app.state.orchestrator
    return {"connected": await orchestrator.client.test_connection()}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~pixelprompt.core.config.config` (which
    loads from ``PIXELPROMPT_SERVER_HOST`` and ``PIXELPROMPT_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``pixelprompt`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "pixelprompt.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
