"""
Main FastAPI Application Entry Point

==============================================================================
FEATURES IMPLEMENTED IN THIS MODULE:
==============================================================================

1. APPLICATION CONTEXT (Feature: app-context)
   - build_context() creates the process-wide AppContext (environment
     resolver, document store, identity client, i18n) once at startup
   - Stored on app.state.context; routes reach it through get_context()

2. RUNTIME CONFIGURATION ON STARTUP (Feature: environment-resolver)
   - env.load_config() runs the inline -> config document -> meta tag ladder
   - Startup fails loudly when no source provides the required keys

3. DEMO DATA (Feature: auto-seed)
   - ensure_demo_data() seeds the demo tenant on development hosts when
     SEED_DEMO_DATA is on; never overwrites an existing tenant

4. PAGE ROUTES (Feature: router)
   - The page router is a catch-all, so it is included after /health and /api

==============================================================================
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
from .controllers import router
from . import config
from .seed_service import ensure_demo_data
from ..portal.context import AppContext, build_context
from ..portal.routes import page_router

logger = logging.getLogger(__name__)


# ==============================================================================
# LIFESPAN MANAGER (Feature: environment-resolver)
# ==============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup actions:
    1. Build the application context (unless one was injected)
    2. Load the runtime configuration; ConfigurationError aborts startup
    3. Seed demo data on development hosts
    """
    logger.info("Starting portal server...")
    context: Optional[AppContext] = getattr(app.state, "context", None)
    if context is None:
        context = build_context()
        app.state.context = context

    runtime = await context.env.load_config()
    logger.info(f"Runtime configuration: {runtime.safe_dict()}")

    if context.env.is_development() and config.SEED_DEMO_DATA:
        seeded = await ensure_demo_data(context.db)
        if seeded:
            logger.info(f"Seeded demo data: {seeded}")

    yield

    logger.info("Portal server shutting down...")


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    app = FastAPI(title=config.API_TITLE, docs_url="/api/docs", lifespan=lifespan)
    if context is not None:
        app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(router)
    app.include_router(page_router)
    return app


app = create_app()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
    uvicorn.run("src.api.main:app", host=config.API_HOST, port=config.API_PORT, reload=config.API_DEBUG)
