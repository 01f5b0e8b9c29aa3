"""
FastAPI application bootstrap with: \n
- Lifespan-managed initialization (table creation in runtime mode) \n
- CORS configured for the frontend \n
- Error rendering for mediation errors as `{"error": message}` \n
- Application and AI proxy routers \n
- Authenticated WebSocket streaming live changes of a case \n

Environment contract (from `settings`): \n
- INIT_MODE: if 'runtime', create missing tables during app startup. \n
- FRONTEND_URL: allowed CORS origin. \n
- LOG_LEVEL: level of the root and uvicorn loggers. \n
"""

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from mediator.api.fast_api import router
from mediator.api.functions import router as functions_router
from mediator.api.utils import authenticate, extract_token
from mediator.database.config.config import settings
from mediator.database.config.connection_engine import create_tables
from mediator.mediation.change_feed import ChangeFeed
from mediator.mediation.errors import MediationError
from mediator.mediation.records import Change
from mediator.mediation.store import CaseStore
from mediator.mediation.synchronizer import SessionSynchronizer
from contextlib import asynccontextmanager
from uuid import UUID
import asyncio
import logging

logging.basicConfig(level=settings.LOG_LEVEL)

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""
logger.setLevel(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup: if INIT_MODE == 'runtime', create any missing tables.
    - On shutdown: nothing to release; open WebSockets unsubscribe themselves.
    """
    if settings.INIT_MODE == "runtime":
        logger.info("Creating database tables")
        create_tables()
    else:
        logger.info(f"Skipping table creation (INIT_MODE={settings.INIT_MODE}).")
    yield
    logger.info("App shutting down.")


# Instantiate the FastAPI app with lifespan handler
app = FastAPI(lifespan=lifespan)
"""Instantiates the FastAPI application object."""

app.state.change_feed = ChangeFeed()
app.state.case_store = CaseStore(app.state.change_feed)

# -----------------------
# CORS configuration
# -----------------------
url = settings.FRONTEND_URL
"""The allowed frontend origin (URL) used for CORS configuration."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=[url],      # Frontend origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MediationError)
async def mediation_error_handler(request: Request, exc: MediationError):
    """Render any mediation error as `{"error": message}` with its status code."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse({"error": "Internal server error"}, status_code=exc.status_code)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


# -----------------------
# API routes
# -----------------------
app.include_router(router)
app.include_router(functions_router)


def _frame(kind: str, payload) -> dict:
    return {"type": kind, "data": jsonable_encoder(payload)}


@app.websocket("/ws/cases/{case_id}")
async def case_updates(websocket: WebSocket, case_id: str):
    """
    Authenticated WebSocket streaming one case.

    Auth
    ----
    - `token` cookie, `?token=` query parameter or a Bearer header.
    - Non-participants and invalid tokens are closed with 1008.

    Protocol
    --------
    - First frame: ``{"type": "snapshot", "data": <case snapshot>}``.
    - Then one ``{"type": "change", "data": {"table", "event", "record"}}``
      frame per change the mirror actually applied.

    Close Codes
    -----------
    - 1008: Policy Violation (used when auth or participation fails).
    """
    await websocket.accept()
    token = websocket.query_params.get("token") or extract_token(
        websocket.headers.get("authorization"), websocket.cookies.get("token")
    )
    store: CaseStore = websocket.app.state.case_store
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_change(change: Change) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, change)

    # subscribe before loading so nothing committed in between is missed
    unsubscribe = store.feed.subscribe(case_id, on_change) if _is_uuid(case_id) else None
    pump_task = None
    try:
        try:
            user = await run_in_threadpool(authenticate, token)
            snapshot = await run_in_threadpool(store.snapshot, case_id, user["id"])
        except MediationError as e:
            logger.info(f"WebSocket for case {case_id} refused: {e.message}")
            await websocket.close(code=1008)
            return

        synchronizer = SessionSynchronizer(snapshot.case.id)
        synchronizer.load(snapshot)
        await websocket.send_json(_frame("snapshot", snapshot))

        async def pump():
            while True:
                change = await queue.get()
                if synchronizer.apply(change):
                    await websocket.send_json(_frame("change", change))

        pump_task = asyncio.create_task(pump())
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info(f"User {user['id']} left case {case_id}")
    finally:
        if unsubscribe:
            unsubscribe()
        if pump_task is not None:
            pump_task.cancel()
            (outcome,) = await asyncio.gather(pump_task, return_exceptions=True)
            if isinstance(outcome, Exception):
                logger.warning(f"Change stream for case {case_id} failed: {outcome!r}")


def _is_uuid(value: str) -> bool:
    try:
        UUID(value)
        return True
    except ValueError:
        return False
