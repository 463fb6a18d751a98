"""
Request-scoped dependencies
"""

from fastapi import Request

from services.base_service import BaseBiodataService


def get_biodata_service(request: Request) -> BaseBiodataService:
    """Storage service built during application startup"""
    service = getattr(request.app.state, "biodata_service", None)
    if service is None:
        raise RuntimeError("Biodata storage is not initialized")
    return service
