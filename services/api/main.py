"""
Gateway Flow - FastAPI Backend

Drives the demo authentication gateway and serves the reconstructed
message-flow timeline (M1-M4 grouped by session) as JSON.
"""
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from gateway_client import GatewayClient
from log import get_logger
from metrics import api_request_latency, api_requests, router as metrics_router
from runtime import init_runtime

logger = get_logger()


def build_gateway() -> GatewayClient:
    return GatewayClient(settings.GATEWAY_URL, timeout=settings.GATEWAY_TIMEOUT_S)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: wire the gateway client, load the current logs once."""
    logger.info("gateway_flow.starting", gateway=settings.GATEWAY_URL, env=settings.APP_ENV)
    gateway = build_gateway()
    runtime = init_runtime(app, gateway)

    if settings.REFRESH_ON_STARTUP:
        applied = await runtime.poller.refresh_once()
        logger.info("gateway_flow.ready", initial_snapshot=applied)
    yield

    await runtime.poller.shutdown()
    gateway.close()
    logger.info("gateway_flow.shutdown")


app = FastAPI(
    title="Gateway Flow - Protocol Timeline",
    description="Session-grouped, phase-ordered timeline of the M1-M4 authentication exchange",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def track_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    dur = time.perf_counter() - start
    if not request.url.path.startswith(("/docs", "/openapi", "/redoc", "/metrics")):
        api_requests.labels(method=request.method, path=request.url.path, status=str(response.status_code)).inc()
        api_request_latency.labels(method=request.method, path=request.url.path).observe(dur)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ═══════════════════════════════════════════════════════════
# ROUTERS
# ═══════════════════════════════════════════════════════════

from routers import gateway, timeline, health

app.include_router(health.router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(timeline.router, prefix="/api/v1/timeline", tags=["Timeline"])
app.include_router(gateway.router, prefix="/api/v1/gateway", tags=["Gateway"])
