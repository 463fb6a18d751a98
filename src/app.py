"""
Biodata API Server
Single-table CRUD for student records over an ORM or a raw SQL storage layer
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import ALLOWED_ORIGINS, LOG_LEVEL
from api.routes import health, biodata
from services.biodata_service import create_biodata_service
from utils.error_handling import setup_error_handling

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect, synchronize the schema and seed before serving requests"""
    service = create_biodata_service()
    try:
        await service.connect()
        logger.info(f"Connected to database via {service.backend_name}")
        await service.sync_schema()
        seeded = await service.seed_if_empty()
        if seeded:
            logger.info(f"Inserted {seeded} example records")

        app.state.biodata_service = service
        yield
    finally:
        app.state.biodata_service = None
        await service.close()


def create_app(lifespan=lifespan) -> FastAPI:
    app = FastAPI(
        title="Biodata API",
        description="REST API for managing student biodata records",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials="*" not in ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    setup_error_handling(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(biodata.router, prefix="/biodata", tags=["Biodata"])
    return app


app = create_app()
