import json
import os
import time
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, ValidationError

from engagement import EngagementError, MalformedBody, NotFound, SnapshotStore, StatsEngine
from engagement.snapshot import DEFAULT_DATA_PATH
from static_site import DEFAULT_PUBLIC_DIR, content_type_for, resolve_static_path

# ── Config ───────────────────────────────────────────────────────────
load_dotenv()
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
DATA_PATH = os.environ.get("STATS_DATA_PATH", str(DEFAULT_DATA_PATH))
PUBLIC_DIR = os.environ.get("PUBLIC_DIR", DEFAULT_PUBLIC_DIR)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

logger = logging.getLogger("uvicorn.error")

# ── Globals ──────────────────────────────────────────────────────────
engine: Optional[StatsEngine] = None


# ── Lifespan ─────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    global engine
    engine = StatsEngine(SnapshotStore(Path(DATA_PATH)))
    state = engine.state
    logger.info(
        f"Loaded stats from {DATA_PATH}: {state.total_visits} visits, "
        f"{len(state.unique_visitors_set)} unique visitors, "
        f"{len(state.game_clicks)} games clicked"
    )
    logger.info(f"Serving static files from {PUBLIC_DIR}")

    yield

    logger.info("Shutting down.")


# ── App ──────────────────────────────────────────────────────────────
app = FastAPI(title="Game Stats API", lifespan=lifespan)


# ── Request logging + CORS on every response ─────────────────────────
@app.middleware("http")
async def latency_middleware(request: Request, call_next):
    t0 = time.time()
    response = await call_next(request)
    for name, value in CORS_HEADERS.items():
        response.headers.setdefault(name, value)
    latency_ms = (time.time() - t0) * 1000
    logger.debug(
        f"[http] {request.method} {request.url.path} -> {response.status_code} "
        f"({latency_ms:.1f}ms)"
    )
    return response


@app.exception_handler(EngagementError)
async def engagement_error_handler(request: Request, exc: EngagementError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# ── Schemas ──────────────────────────────────────────────────────────
class VisitRequest(BaseModel):
    visitorId: Optional[str] = None


class ClickRequest(VisitRequest):
    gameId: Optional[str] = None


class VoteRequest(ClickRequest):
    value: Optional[str] = None


class GameVotes(BaseModel):
    likes: int
    dislikes: int


class StatsSummary(BaseModel):
    totalVisits: int
    uniqueVisitors: int
    todayVisits: int
    gameClicks: dict[str, int]
    gameVotes: dict[str, GameVotes]


class StatsResponse(BaseModel):
    stats: StatsSummary


class ActionResponse(BaseModel):
    visitorId: str
    stats: StatsSummary
    visitorVotes: dict[str, str]


# ── Helper functions ─────────────────────────────────────────────────
def get_engine() -> StatsEngine:
    if engine is None:
        raise HTTPException(status_code=503, detail="Stats store not initialised.")
    return engine


async def read_payload(request: Request, model: type[BaseModel]):
    """Decode the JSON body into ``model``. An empty body counts as ``{}``."""
    raw = await request.body()
    if not raw.strip():
        payload = {}
    else:
        try:
            payload = json.loads(raw)
        except ValueError:
            raise MalformedBody("Invalid JSON")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.info(f"[http] rejected body for {request.url.path}: {exc.error_count()} error(s)")
        raise MalformedBody("Invalid request body")


# ── Endpoints ────────────────────────────────────────────────────────
@app.get("/health")
async def health():
    return {"status": "ok", "store_loaded": engine is not None}


@app.get("/api/stats", response_model=StatsResponse)
async def stats():
    return {"stats": get_engine().summary()}


@app.post("/api/visit", response_model=ActionResponse)
async def visit(request: Request):
    req = await read_payload(request, VisitRequest)
    return get_engine().record_visit(req.visitorId)


@app.post("/api/click", response_model=ActionResponse)
async def click(request: Request):
    req = await read_payload(request, ClickRequest)
    return get_engine().record_click(req.visitorId, req.gameId)


@app.post("/api/vote", response_model=ActionResponse)
async def vote(request: Request):
    req = await read_payload(request, VoteRequest)
    return get_engine().record_vote(req.visitorId, req.gameId, req.value)


@app.options("/{full_path:path}")
async def preflight(full_path: str):
    return {}


@app.api_route("/{full_path:path}", methods=["GET", "HEAD"], include_in_schema=False)
async def static_files(full_path: str):
    """Serve files from PUBLIC_DIR; ``/`` maps to index.html."""
    path = resolve_static_path(PUBLIC_DIR, full_path)
    return FileResponse(path, media_type=content_type_for(path))


@app.api_route(
    "/{full_path:path}",
    methods=["POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def not_found(full_path: str):
    raise NotFound("Not found")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT)
