"""Main entrypoint for the board assistant FastAPI application.

Exposes the read-only board analytics (snapshot, health audits, history
audit, cleanup plan, executive summary, overdue list, priority ranking and
card history) as JSON endpoints for the assistant's tool calls.
"""

import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends
from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse

from board_assistant.config.settings import Settings
from board_assistant.core.context import AnalyticsContext
from board_assistant.core.context import build_context
from board_assistant.core.errors import BoardAssistantError
from board_assistant.models.board import BoardSnapshot
from board_assistant.models.reports import CardTimeline
from board_assistant.models.reports import CleanupPlan
from board_assistant.models.reports import HealthReport
from board_assistant.models.reports import HistoryReport
from board_assistant.models.reports import ListHealthReport
from board_assistant.models.reports import OverdueReport
from board_assistant.models.reports import PriorityPlan
from board_assistant.models.reports import SummaryReport
from board_assistant.models.requests import BoardRequest
from board_assistant.models.requests import CardHistoryRequest
from board_assistant.models.requests import HistoryRequest
from board_assistant.models.requests import ListRequest
from board_assistant.services.cleanup import suggest_cleanup
from board_assistant.services.health import analyze_board
from board_assistant.services.health import analyze_list
from board_assistant.services.history import audit_history
from board_assistant.services.history import card_timeline
from board_assistant.services.snapshot import build_snapshot
from board_assistant.services.summary import generate_summary
from board_assistant.services.triage import list_overdue_tasks
from board_assistant.services.triage import prioritize_list
from board_assistant.utils.logger import generate_request_id
from board_assistant.utils.logger import log_error
from board_assistant.utils.logger import log_info
from board_assistant.utils.logger import log_warn


load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the analytics context once per process."""

    settings = Settings.from_env()
    app.state.settings = settings
    app.state.context = build_context(settings)
    if not settings.trello_api_key or not settings.trello_api_token:
        log_warn("TRELLO_API_KEY or TRELLO_API_TOKEN is not set; Trello calls will be rejected")
    log_info("Board assistant ready", narrative_enabled=app.state.context.narrator is not None)
    yield


app = FastAPI(title="Trello Board Assistant", version="0.1.0", lifespan=lifespan)


def get_context(request: Request) -> AnalyticsContext:
    return request.app.state.context


def get_default_board(request: Request):
    settings = getattr(request.app.state, "settings", None)
    return settings.default_board if settings else None


def _start(request: Request, msg: str, board_name: str, **extra: object) -> None:
    request_id = generate_request_id()
    request.state.request_id = request_id
    request.state.board_name = board_name
    log_info(msg, board_name=board_name, request_id=request_id, **extra)


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> dict:
    """Health check endpoint to verify that the service is running."""

    return {"status": "ok"}


@app.post("/analytics/snapshot", response_model=BoardSnapshot)
async def snapshot_route(
    body: BoardRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "Board snapshot requested", board)
    return await build_snapshot(ctx, board)


@app.post("/analytics/board-health", response_model=HealthReport)
async def board_health_route(
    body: BoardRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "Board health requested", board)
    return await analyze_board(ctx, board)


@app.post("/analytics/list-audit", response_model=ListHealthReport)
async def list_audit_route(
    body: ListRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "List audit requested", board, list_name=body.list_name)
    return await analyze_list(ctx, board, body.list_name)


@app.post("/analytics/history", response_model=HistoryReport)
async def history_route(
    body: HistoryRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "History audit requested", board, since=body.since, before=body.before)
    return await audit_history(ctx, board, since=body.since, before=body.before)


@app.post("/analytics/cleanup", response_model=CleanupPlan)
async def cleanup_route(
    body: BoardRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "Cleanup plan requested", board)
    return await suggest_cleanup(ctx, board)


@app.post("/analytics/summary", response_model=SummaryReport)
async def summary_route(
    body: BoardRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "Executive summary requested", board)
    return await generate_summary(ctx, board)


@app.post("/analytics/overdue", response_model=OverdueReport)
async def overdue_route(
    body: BoardRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "Overdue tasks requested", board)
    return await list_overdue_tasks(ctx, board)


@app.post("/analytics/prioritize", response_model=PriorityPlan)
async def prioritize_route(
    body: ListRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "List prioritization requested", board, list_name=body.list_name)
    return await prioritize_list(ctx, board, body.list_name)


@app.post("/analytics/card-history", response_model=CardTimeline)
async def card_history_route(
    body: CardHistoryRequest,
    request: Request,
    ctx: AnalyticsContext = Depends(get_context),
    default_board=Depends(get_default_board),
):
    board = body.resolved_board(default_board)
    _start(request, "Card history requested", board, card_name=body.card_name)
    return await card_timeline(
        ctx,
        board,
        body.card_name,
        since=body.since,
        before=body.before,
        limit=body.limit,
    )


@app.exception_handler(BoardAssistantError)
async def board_assistant_error_handler(request: Request, exc: BoardAssistantError):
    """Map analytics failures to their HTTP status."""

    request_id = getattr(request.state, "request_id", None)
    log_warn(
        "Analytics request failed",
        board_name=getattr(request.state, "board_name", None),
        request_id=request_id,
        kind=exc.kind.value,
        error=exc.message,
        upstream_status=exc.status_code,
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for uncaught exceptions.

    Ensures the service returns a 500 JSON error rather than crashing, and
    logs the error together with any request_id associated with the request.
    """

    request_id = getattr(request.state, "request_id", None)
    log_error(
        "Unhandled exception",
        board_name=getattr(request.state, "board_name", None),
        request_id=request_id,
        error=str(exc),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def run() -> None:
    """Serve the app with uvicorn; HOST and PORT come from the environment."""

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    run()
