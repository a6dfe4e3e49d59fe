"""FastAPI ingestion surface for tab events and on-demand classification.

The browser side (content scripts, tab listeners) posts inbound messages
to ``/api/messages``; the settings side reads and replaces the domain
lists and sensitivity.  Rendering and settings forms live elsewhere.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query
from pydantic import BaseModel, ValidationError

from focusfuel.core.types import ClassificationResult, DistractionEvent, Sensitivity
from focusfuel.tracking.messages import MessageReply, dispatch, parse_message
from focusfuel.tracking.registry import TabStats
from focusfuel.tracking.runtime import Runtime

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class DomainListsResponse(BaseModel):
    blacklist: list[str]
    whitelist: list[str]


class DomainListsUpdateRequest(BaseModel):
    blacklist: list[str] | None = None
    whitelist: list[str] | None = None


class SensitivityBody(BaseModel):
    sensitivity: Sensitivity


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(runtime: Runtime, *, start_ticker: bool = True) -> FastAPI:
    """Build the FastAPI application around an existing :class:`Runtime`.

    Args:
        runtime: Registry, pipeline and sinks to serve.
        start_ticker: Run the periodic sweep for the app's lifetime.
    """
    registry = runtime.registry
    pipeline = runtime.pipeline

    @asynccontextmanager
    async def lifespan(_app: FastAPI):  # type: ignore[no-untyped-def]
        if start_ticker:
            runtime.ticker.start()
        yield
        await runtime.shutdown()

    app = FastAPI(
        title="focusfuel",
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # -- inbound messages ------------------------------------------------------

    @app.post("/api/messages")
    async def post_message(body: dict[str, Any] = Body(...)) -> MessageReply:
        try:
            message = parse_message(body)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc
        return await dispatch(registry, message)

    # -- tabs ------------------------------------------------------------------

    @app.get("/api/tabs")
    async def list_tabs() -> list[TabStats]:
        out: list[TabStats] = []
        for session in registry.sessions():
            stats = registry.stats(session.tab_id)
            if stats is not None:
                out.append(stats)
        return out

    @app.get("/api/tabs/{tab_id}/classification")
    async def classify_tab(tab_id: int) -> ClassificationResult:
        result = await registry.classify_tab(tab_id)
        if result is None:
            raise HTTPException(status_code=404, detail=f"No classifiable session for tab {tab_id}")
        return result

    # -- events ----------------------------------------------------------------

    @app.get("/api/events")
    async def recent_events(limit: int = Query(50, ge=1, le=500)) -> list[DistractionEvent]:
        events = runtime.store.read_all()
        return events[-limit:]

    # -- configuration ---------------------------------------------------------

    @app.get("/api/config/lists")
    async def get_lists() -> DomainListsResponse:
        return DomainListsResponse(
            blacklist=pipeline.lists.blacklist,
            whitelist=pipeline.lists.whitelist,
        )

    @app.put("/api/config/lists")
    async def put_lists(body: DomainListsUpdateRequest) -> DomainListsResponse:
        pipeline.lists.replace(blacklist=body.blacklist, whitelist=body.whitelist)
        logger.info(
            "Domain lists replaced (%d blacklisted, %d whitelisted)",
            len(pipeline.lists.blacklist), len(pipeline.lists.whitelist),
        )
        return await get_lists()

    @app.get("/api/config/sensitivity")
    async def get_sensitivity() -> SensitivityBody:
        return SensitivityBody(sensitivity=pipeline.sensitivity)

    @app.put("/api/config/sensitivity")
    async def put_sensitivity(body: SensitivityBody) -> SensitivityBody:
        pipeline.sensitivity = body.sensitivity
        logger.info("Sensitivity set to %s", body.sensitivity)
        return SensitivityBody(sensitivity=pipeline.sensitivity)

    return app
