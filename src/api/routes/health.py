"""
Health check API route
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_biodata_service
from config.settings import DB_NAME
from services.base_service import BaseBiodataService

router = APIRouter()


@router.get("/")
async def health_check(service: BaseBiodataService = Depends(get_biodata_service)):
    """Static readiness payload; does not touch the database"""
    return {"ok": True, "orm": service.backend_name, "db": DB_NAME}
