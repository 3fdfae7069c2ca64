import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bolgen.api.router import api_router
from bolgen.config import settings
from bolgen.middleware.logging import RequestLoggingMiddleware
from bolgen.services.rate_limiter import RateLimiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Sentry if DSN is configured
    if settings.sentry_dsn:
        try:
            import sentry_sdk
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=0.1,
                environment=settings.environment,
            )
            logger.info("Sentry initialized (env=%s)", settings.environment)
        except Exception as e:
            logger.warning("Failed to initialize Sentry: %s", e)

    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; B/L generation will return 503")

    logger.info("Starting B/L generator backend (env=%s)", settings.environment)
    yield
    logger.info("Shutting down B/L generator backend")


app = FastAPI(
    title="bolgen - Bill of Lading Generator",
    description="Claude-powered Bill of Lading generation from packing lists and commercial invoices",
    version=settings.app_version,
    lifespan=lifespan,
)

# One limiter per app instance; routes get it through a dependency
app.state.rate_limiter = RateLimiter(
    limit=settings.rate_limit_requests,
    window_seconds=settings.rate_limit_window_seconds,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-BOL-Number", "X-Page-Count", "X-Request-ID"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix="/api")
