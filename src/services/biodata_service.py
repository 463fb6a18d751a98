"""
Storage variant selection
"""

import logging

from config import settings as app_settings
from services.base_service import BaseBiodataService
from services.biodata_orm_service import BiodataORMService
from services.biodata_sql_service import BiodataSQLService

logger = logging.getLogger(__name__)


def create_biodata_service(settings=app_settings) -> BaseBiodataService:
    """Build the storage service selected by settings.STORAGE_BACKEND"""
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "orm":
        service = BiodataORMService(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_MAX_SIZE,
            command_timeout=settings.DB_COMMAND_TIMEOUT,
            echo=settings.DB_LOGGING,
        )
    elif backend == "sql":
        service = BiodataSQLService(
            settings.DATABASE_URL,
            min_size=settings.DB_POOL_MIN_SIZE,
            max_size=settings.DB_POOL_MAX_SIZE,
            command_timeout=settings.DB_COMMAND_TIMEOUT,
            echo=settings.DB_LOGGING,
        )
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    logger.info(f"Using {service.backend_name} biodata storage")
    return service
