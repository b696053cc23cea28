from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Routers
from .routers.valuation import router as valuation_router
from .routers.images import router as images_router

# Core modules
from .core.config import settings
from .core.errors import register_error_handlers
from .core.logging import configure_logging, CorrelationIdMiddleware
from .core.metrics import PromMiddleware, metrics_endpoint
from .services.valuation_service import close_completion_model

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_completion_model()

def create_app() -> FastAPI:
    """
    App factory so tests and ASGI servers can instantiate cleanly.
    """
    configure_logging()  # Set up JSON logs + correlation-id filter

    app = FastAPI(
        title="Property AVM API",
        version="1.0.0",
        description="Comparable-sales valuation with an LLM second opinion, plus listing photo matching.",
        lifespan=lifespan,
    )

    # CORS: the portal front end calls the API from the browser.
    allow_origins = [o.strip() for o in settings.ALLOW_ORIGINS.split(",")] if settings.ALLOW_ORIGINS else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    # Observability middlewares
    app.add_middleware(CorrelationIdMiddleware)  # Adds/propagates X-Request-Id
    if settings.PROMETHEUS_ENABLED:
        app.add_middleware(PromMiddleware)       # Records req/latency metrics

    register_error_handlers(app)

    # Meta routes
    @app.get("/v1/health", tags=["meta"])
    def health():
        return {"status": "ok"}

    @app.get("/v1/ping", tags=["meta"])
    def ping():
        return {"pong": True}

    if settings.PROMETHEUS_ENABLED:
        # Standard Prometheus scrape endpoint
        app.add_route("/v1/metrics", metrics_endpoint, methods=["GET"])

    # Business routes
    app.include_router(valuation_router, prefix="/v1", tags=["valuation"])
    app.include_router(images_router, prefix="/v1", tags=["images"])

    return app

app = create_app()
