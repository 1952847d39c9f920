from contextlib import asynccontextmanager
import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from sdg_portal.core.config import settings
from sdg_portal.core.limiter import limiter
from sdg_portal.core.logging import setup_logging

setup_logging()

logger = logging.getLogger(__name__)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.APP_ENV,
        send_default_pii=False,
    )
    logger.info("Sentry initialized env=%s", settings.APP_ENV)


async def _check_database() -> None:
    from sdg_portal.db.session import engine

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("Database unreachable at startup (continuing): %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await _check_database()
    logger.info(
        "SDG portal started env=%s import_concurrency=%d import_rate_limit=%s",
        settings.APP_ENV,
        settings.IMPORT_SUBMIT_CONCURRENCY,
        settings.IMPORT_RATE_LIMIT,
    )
    yield
    from sdg_portal.db.session import engine
    await engine.dispose()


app = FastAPI(
    title="Balochistan SDG Data Collection",
    description="Form definitions, data entry submissions and CSV bulk import.",
    version="0.1.0",
    docs_url="/api/docs" if settings.APP_ENV != "production" else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


# ─── Routers ───
from sdg_portal.api.v1.router import api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV}
