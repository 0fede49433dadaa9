"""FastAPI application entry point."""

import time
from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from restaurant_skins.config import configure_logging, get_settings
from restaurant_skins.errors import (
    RenderError,
    RestaurantNotFoundError,
    SkinNotFoundError,
)
from restaurant_skins.metrics import REQUEST_COUNT, REQUEST_DURATION
from restaurant_skins.models.api import (
    MappingResponse,
    RestaurantListResponse,
    RevalidateRequest,
    RevalidateResponse,
    SkinListResponse,
)
from restaurant_skins.models.skin import RenderPlan
from restaurant_skins.pipeline import SitePipeline

logger = structlog.get_logger()

CSS_MEDIA_TYPE = "text/css"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    logger.info("application_starting", app_name=settings.app_name, skins_dir=str(settings.skins_dir))

    if getattr(app.state, "pipeline", None) is None:
        app.state.pipeline = SitePipeline(settings=settings)

    yield

    logger.info("application_shutting_down", cache=app.state.pipeline.cache.stats())


def create_app(pipeline: SitePipeline | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        pipeline: Pre-built pipeline (tests inject one over temporary directories)
    """
    app = FastAPI(
        title="Restaurant Skins API",
        description="Render plans for restaurant sites from skins and restaurant data",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline

    def get_pipeline() -> SitePipeline:
        if app.state.pipeline is None:
            app.state.pipeline = SitePipeline()
        return app.state.pipeline

    # Request logging and metrics middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(duration)

        logger.info(
            "request_completed",
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            process_time_ms=round(duration * 1000, 2),
        )

        return response

    # Health check
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        pipeline = get_pipeline()
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "version": "0.1.0",
            "default_skin_id": pipeline.default_skin_id,
            "cache": pipeline.cache.stats(),
        }

    # Metrics endpoint
    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Skin endpoints
    @app.get("/skins", response_model=SkinListResponse)
    def list_skins():
        """List skin directories with their template metadata."""
        pipeline = get_pipeline()
        return SkinListResponse(
            skins=pipeline.store.list_skins(),
            default_skin_id=pipeline.default_skin_id,
        )

    @app.get("/skins/{skin_id}/tokens", response_class=PlainTextResponse)
    def skin_tokens(skin_id: str):
        """CSS variable block for a skin."""
        try:
            css = get_pipeline().tokens_css(skin_id)
        except SkinNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return PlainTextResponse(css, media_type=CSS_MEDIA_TYPE)

    @app.get("/skins/{skin_id}/css", response_class=PlainTextResponse)
    def skin_stylesheet(skin_id: str):
        """Scoped stylesheet for a skin."""
        try:
            result = get_pipeline().stylesheet(skin_id)
        except SkinNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return PlainTextResponse(result.css, media_type=CSS_MEDIA_TYPE)

    @app.get("/skins/{skin_id}/mapping", response_model=MappingResponse)
    def skin_mapping(skin_id: str):
        """Mapping entries a skin renders with (the default layout when it has none)."""
        pipeline = get_pipeline()
        try:
            mapping = pipeline.mappings.load_or_default(skin_id)
        except SkinNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return MappingResponse(
            skin_id=skin_id,
            is_default=mapping.is_default,
            entries=[entry.to_document() for entry in mapping.entries],
        )

    # Restaurant endpoints
    @app.get("/restaurants", response_model=RestaurantListResponse)
    def list_restaurants():
        """List restaurant slugs available in the data directory."""
        return RestaurantListResponse(restaurants=get_pipeline().restaurants.list_slugs())

    @app.get("/restaurants/{slug}/render", response_model=RenderPlan)
    def render_restaurant(slug: str, skin: str | None = Query(default=None, max_length=64)):
        """Build the render plan for a restaurant.

        Falls back to the default skin when the requested one is unavailable.
        """
        try:
            return get_pipeline().render_restaurant(slug, skin_id=skin)
        except RestaurantNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except RenderError as e:
            logger.error("render_error", slug=slug, skin_id=skin, error=str(e))
            raise HTTPException(status_code=500, detail=str(e))

    # Cache invalidation
    @app.post("/revalidate", response_model=RevalidateResponse)
    def revalidate(request: RevalidateRequest):
        """Drop cached skin artifacts after a skin changed on disk."""
        dropped = get_pipeline().invalidate(request.skin_id, request.artifact)
        logger.info("revalidated", skin_id=request.skin_id, artifact=request.artifact, dropped=dropped)
        return RevalidateResponse(skin_id=request.skin_id, artifact=request.artifact, dropped=dropped)

    return app


# Create app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
