"""
Base service layer for biodata storage
Both storage variants (SQLAlchemy ORM and raw asyncpg SQL) implement the same
contract and report failures through ServiceResult instead of raising.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Upper bound of the INTEGER primary key column
MAX_RECORD_ID = 2**31 - 1


class ErrorType(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


@dataclass
class ServiceResult:
    """Result from service operation"""
    success: bool
    data: Optional[List[Dict[str, Any]]] = None
    count: int = 0
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None

    @classmethod
    def ok(cls, data: List[Dict[str, Any]]) -> "ServiceResult":
        return cls(success=True, data=data, count=len(data))

    @classmethod
    def fail(cls, error_type: ErrorType, error: str) -> "ServiceResult":
        return cls(success=False, error=error, error_type=error_type)

    @classmethod
    def not_found(cls, record_id: Any) -> "ServiceResult":
        return cls.fail(ErrorType.NOT_FOUND, f"No biodata record with id {record_id}")


def parse_record_id(record_id: Any) -> Optional[int]:
    """
    Interpret a path id as a primary key value.

    Returns None when the value can never match a row (not an integer, or out
    of the column's range).
    """
    if isinstance(record_id, bool):
        return None
    if isinstance(record_id, int):
        value = record_id
    else:
        text = str(record_id).strip()
        # isdigit() also accepts digits such as "²" that int() rejects
        if not text.isdigit():
            return None
        try:
            value = int(text)
        except ValueError:
            return None
    if not 0 < value <= MAX_RECORD_ID:
        return None
    return value


class BaseBiodataService(ABC):
    """Storage contract for the biodata table"""

    backend_name: str = ""

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection pool and verify the database answers"""

    @abstractmethod
    async def close(self) -> None:
        """Release every pooled connection"""

    @abstractmethod
    async def sync_schema(self) -> None:
        """Create the biodata table when it does not exist yet"""

    @abstractmethod
    async def seed_if_empty(self) -> int:
        """Insert the example records into an empty table; returns rows inserted"""

    @abstractmethod
    async def list_all(self) -> ServiceResult:
        """All records, ascending by id"""

    @abstractmethod
    async def get_by_id(self, record_id: Any) -> ServiceResult:
        ...

    @abstractmethod
    async def create(self, fields: Dict[str, Any]) -> ServiceResult:
        ...

    @abstractmethod
    async def update(self, record_id: Any, fields: Dict[str, Any]) -> ServiceResult:
        """Apply only the supplied fields to an existing record"""

    @abstractmethod
    async def delete(self, record_id: Any) -> ServiceResult:
        ...
