"""
pytest configuration and fixtures for the Biodata API test suite
The HTTP tests run against an in-memory storage service so no database is needed.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List

import httpx
import pytest
import pytest_asyncio
from faker import Faker

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from api.dependencies import get_biodata_service
from app import create_app
from models.biodata import NIM_TAKEN_MESSAGE, BiodataValidationError, validate_biodata_fields
from services.base_service import BaseBiodataService, ErrorType, ServiceResult, parse_record_id


class InMemoryBiodataService(BaseBiodataService):
    """Storage double honoring the same contract as the database services"""

    backend_name = "memory"

    def __init__(self):
        self.rows: Dict[int, Dict[str, Any]] = {}
        self.next_id = 1
        self.calls: List[str] = []
        self.fail_with: Exception = None

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def sync_schema(self) -> None:
        pass

    async def seed_if_empty(self) -> int:
        return 0

    def _check(self, operation: str):
        self.calls.append(operation)
        if self.fail_with is not None:
            raise self.fail_with

    def _nim_taken(self, nim: str, exclude_id: int = None) -> bool:
        return any(row["nim"] == nim and row_id != exclude_id for row_id, row in self.rows.items())

    async def list_all(self) -> ServiceResult:
        self._check("list")
        return ServiceResult.ok([dict(self.rows[row_id]) for row_id in sorted(self.rows)])

    async def get_by_id(self, record_id: Any) -> ServiceResult:
        self._check("get")
        pk = parse_record_id(record_id)
        if pk not in self.rows:
            return ServiceResult.not_found(record_id)
        return ServiceResult.ok([dict(self.rows[pk])])

    async def create(self, fields: Dict[str, Any]) -> ServiceResult:
        self._check("create")
        try:
            validate_biodata_fields(fields)
        except BiodataValidationError as e:
            return ServiceResult.fail(ErrorType.VALIDATION_ERROR, e.message)
        if self._nim_taken(fields["nim"]):
            return ServiceResult.fail(ErrorType.CONFLICT, NIM_TAKEN_MESSAGE)

        row = {"id": self.next_id, **fields}
        self.rows[self.next_id] = row
        self.next_id += 1
        return ServiceResult.ok([dict(row)])

    async def update(self, record_id: Any, fields: Dict[str, Any]) -> ServiceResult:
        self._check("update")
        pk = parse_record_id(record_id)
        if pk not in self.rows:
            return ServiceResult.not_found(record_id)
        try:
            validate_biodata_fields(fields)
        except BiodataValidationError as e:
            return ServiceResult.fail(ErrorType.VALIDATION_ERROR, e.message)
        if "nim" in fields and self._nim_taken(fields["nim"], exclude_id=pk):
            return ServiceResult.fail(ErrorType.CONFLICT, NIM_TAKEN_MESSAGE)

        self.rows[pk].update(fields)
        return ServiceResult.ok([dict(self.rows[pk])])

    async def delete(self, record_id: Any) -> ServiceResult:
        self._check("delete")
        pk = parse_record_id(record_id)
        if pk not in self.rows:
            return ServiceResult.not_found(record_id)
        del self.rows[pk]
        return ServiceResult.ok([{"id": pk}])


@pytest.fixture
def fake():
    return Faker("id_ID")


@pytest.fixture
def make_biodata(fake):
    """Factory for valid create payloads with unique nim values"""
    counter = iter(range(10_000))

    def _make(**overrides) -> Dict[str, str]:
        data = {
            "nama": fake.name()[:100],
            "nim": f"2023{next(counter):07d}",
            "kelas": f"TI-{fake.random_int(min=1, max=8)}{fake.random_element(['A', 'B', 'C'])}",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def storage():
    return InMemoryBiodataService()


@pytest.fixture
def app(storage):
    application = create_app()
    application.dependency_overrides[get_biodata_service] = lambda: storage
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
