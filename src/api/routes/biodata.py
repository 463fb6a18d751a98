"""
Biodata API routes
Request payloads are validated by the pydantic models before the storage
service is called; service failures are translated by raise_for_result.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from api.dependencies import get_biodata_service
from models.biodata import (
    BiodataCreateRequest,
    BiodataDeleteResponse,
    BiodataMutationResponse,
    BiodataRecord,
    BiodataUpdateRequest,
)
from services.base_service import BaseBiodataService, parse_record_id
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[BiodataRecord])
async def list_biodata(service: BaseBiodataService = Depends(get_biodata_service)):
    """List every record ordered by id"""
    result = await service.list_all()
    raise_for_result(result)
    return result.data


@router.get("/{biodata_id}", response_model=BiodataRecord)
async def get_biodata(
    biodata_id: str,
    service: BaseBiodataService = Depends(get_biodata_service)
):
    result = await service.get_by_id(biodata_id)
    raise_for_result(result)
    return result.data[0]


@router.post("", response_model=BiodataMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_biodata(
    request: BiodataCreateRequest,
    service: BaseBiodataService = Depends(get_biodata_service)
):
    """Create a new student record"""
    result = await service.create(request.model_dump())
    raise_for_result(result)

    return {"message": "Student record created", "data": result.data[0]}


@router.put("/{biodata_id}", response_model=BiodataMutationResponse)
async def update_biodata(
    biodata_id: str,
    request: BiodataUpdateRequest,
    service: BaseBiodataService = Depends(get_biodata_service)
):
    """Update only the fields present in the payload"""
    result = await service.update(biodata_id, request.changes())
    raise_for_result(result)

    return {"message": "Student record updated", "data": result.data[0]}


@router.delete("/{biodata_id}", response_model=BiodataDeleteResponse)
async def delete_biodata(
    biodata_id: str,
    service: BaseBiodataService = Depends(get_biodata_service)
):
    result = await service.delete(biodata_id)
    raise_for_result(result)

    return {"message": "Student record deleted", "id": parse_record_id(biodata_id)}
