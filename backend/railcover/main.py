import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from railcover.api.v1.routes.health import router as health_router
from railcover.api.v1.routes.oracle import router as oracle_router
from railcover.api.v1.routes.payouts import router as payouts_router
from railcover.core.config import load_config
from railcover.core.context import build_context
from railcover.core.logging_utils import configure_logging_if_needed

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = load_config()
    configure_logging_if_needed(cfg.log_level)

    ctx = build_context(cfg)
    ctx.notifier.start()
    app.state.context = ctx
    logger.info(
        "RailCover started prediction_url=%s tracking_url=%s tz=%s cache(max=%d ttl=%.0fs) window=(%g, %g) days cap=%g%%",
        cfg.prediction_url,
        cfg.tracking_url,
        cfg.timezone,
        cfg.cache_max_entries,
        cfg.cache_ttl_seconds,
        cfg.time_min_days,
        cfg.time_max_days,
        cfg.probability_cap,
    )
    try:
        yield
    finally:
        await ctx.aclose()
        app.state.context = None


app = FastAPI(title="RailCover Delay Insurance API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

app.include_router(health_router, prefix="/v1")
app.include_router(payouts_router)
app.include_router(oracle_router)
