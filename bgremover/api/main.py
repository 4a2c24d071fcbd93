# =============================================================================
# BACKGROUND REMOVER - Main Application
# =============================================================================
#
# FastAPI application with:
#   - Server-rendered upload / remove / download page
#   - Direct JSON removal endpoint
#   - Request size limits & upload validation
#   - Structured logging & request IDs
#   - Prometheus metrics
#   - Standardized error handling
#
# =============================================================================

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bgremover.api.middleware import (
    MetricsMiddleware,
    RequestLoggingMiddleware,
    SizeLimitMiddleware,
    metrics_endpoint,
    register_exception_handlers,
    setup_logging,
)
from bgremover.api.routes import health, images, ui
from bgremover.core.config import settings

# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger = setup_logging()
    logger.info("Starting Background Remover...")
    logger.info(f"Using model {settings.gemini_model}")

    if not settings.gemini_api_key:
        logger.warning("No Gemini API key configured; removals will fail until GEMINI_API_KEY is set")

    if settings.is_production():
        logger.info("Running in PRODUCTION mode")
    else:
        logger.info("Running in DEVELOPMENT mode")

    yield

    # Release the preview held by the page controller, if one was created
    if ui.get_controller.cache_info().currsize:
        ui.get_controller().close()
    logger.info("Shutting down Background Remover...")


# =============================================================================
# APPLICATION
# =============================================================================

app = FastAPI(
    title="Background Remover",
    description="Remove image backgrounds with Gemini",
    version="1.0.0",
    docs_url="/docs" if not settings.is_production() else None,  # Disable in prod
    redoc_url="/redoc" if not settings.is_production() else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE (Order matters! First added = outermost = runs first)
# =============================================================================

# 1. Request logging (outermost - logs everything)
app.add_middleware(RequestLoggingMiddleware)

# 2. Metrics collection
app.add_middleware(MetricsMiddleware)

# 3. Request size limiting
app.add_middleware(SizeLimitMiddleware)

# 4. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

register_exception_handlers(app)


# =============================================================================
# ROUTES
# =============================================================================

# Health checks
app.include_router(health.router, tags=["health"])

# Page
app.include_router(ui.router, tags=["ui"])

# API routes
app.include_router(images.router, prefix="/api/v1/images", tags=["images"])

# Metrics endpoint (for Prometheus scraping)
app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)


def run():
    """Serve the app with uvicorn using configured host and port."""
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
