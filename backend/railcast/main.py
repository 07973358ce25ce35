import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from railcast.api.stations import router as stations_router
from railcast.api.trains import router as trains_router
from railcast.config import get_settings
from railcast.database.db import close_pool, get_pool
from railcast.database.schema import apply_schema
from railcast.errors import RailcastError
from railcast.redis import redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- startup ---
    settings = get_settings()
    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(
            settings.upstream_read_timeout, connect=settings.upstream_connect_timeout
        )
    )
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            await apply_schema(conn)
        logger.info("Database connection OK")
    except Exception as e:
        logger.warning("Database not reachable at startup: %s (app will still start)", e)
    if redis_client is not None:
        try:
            await redis_client.ping()
            logger.info("Redis connection OK")
        except Exception as e:
            logger.warning("Redis not reachable at startup: %s (app will still start)", e)
    yield
    # --- shutdown ---
    await app.state.http_client.aclose()
    await close_pool()
    if redis_client is not None:
        await redis_client.aclose()


app = FastAPI(
    title="Railcast API",
    description="Stations, trains and train audio announcements",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stations_router)
app.include_router(trains_router)


@app.exception_handler(RailcastError)
async def railcast_error_handler(request: Request, exc: RailcastError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"detail": "; ".join(parts)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/", response_class=PlainTextResponse)
def read_root():
    return "Railcast API"


@app.get("/health")
def health_check():
    return {"status": "healthy"}
