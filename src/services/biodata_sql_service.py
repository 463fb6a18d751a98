"""
Biodata storage over raw parameterized SQL (asyncpg)
"""

import logging
from typing import Any, Dict, Optional

import asyncpg

from database.connection import create_db_pool, close_db_pool
from database.schema import (
    COUNT_BIODATA,
    CREATE_BIODATA_TABLE,
    DELETE_BIODATA,
    INSERT_BIODATA,
    SEED_BIODATA,
    SELECT_ALL_BIODATA,
    SELECT_BIODATA_BY_ID,
    build_update_query,
)
from models.biodata import (
    BIODATA_FIELDS,
    NIM_TAKEN_MESSAGE,
    SEED_RECORDS,
    BiodataValidationError,
    validate_biodata_fields,
    violation_message,
)
from services.base_service import BaseBiodataService, ErrorType, ServiceResult, parse_record_id

logger = logging.getLogger(__name__)

# Driver errors that mean "connection or database unavailable"
STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

# SQLSTATE classes the table constraints raise for bad field values
VALIDATION_VIOLATIONS = (
    asyncpg.CheckViolationError,
    asyncpg.NotNullViolationError,
    asyncpg.StringDataRightTruncationError,
)


class BiodataSQLService(BaseBiodataService):
    """Single-table CRUD issuing one SQL statement per step"""

    backend_name = "asyncpg"

    def __init__(
        self,
        database_url: str,
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: float = 60,
        echo: bool = False,
        pool: Optional[asyncpg.Pool] = None,
    ):
        self.database_url = database_url
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.echo = echo
        self._pool = pool

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database pool not initialized")
        return self._pool

    def _log_query(self, query: str, params) -> None:
        if self.echo:
            logger.info(f"Executing: {query.strip()} | params: {list(params)}")

    async def connect(self) -> None:
        if self._pool is None:
            self._pool = await create_db_pool(
                self.database_url,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
            )

    async def close(self) -> None:
        if self._pool is not None:
            await close_db_pool(self._pool)
            self._pool = None

    async def sync_schema(self) -> None:
        async with self.pool.acquire() as conn:
            self._log_query(CREATE_BIODATA_TABLE, [])
            await conn.execute(CREATE_BIODATA_TABLE)
        logger.info("Biodata table synchronized")

    async def seed_if_empty(self) -> int:
        async with self.pool.acquire() as conn:
            count = await conn.fetchval(COUNT_BIODATA)
            if count:
                return 0

            rows = [tuple(record[field] for field in BIODATA_FIELDS) for record in SEED_RECORDS]
            async with conn.transaction():
                self._log_query(SEED_BIODATA, rows)
                await conn.executemany(SEED_BIODATA, rows)

        logger.info(f"Seeded biodata table with {len(rows)} example records")
        return len(rows)

    async def list_all(self) -> ServiceResult:
        try:
            async with self.pool.acquire() as conn:
                self._log_query(SELECT_ALL_BIODATA, [])
                rows = await conn.fetch(SELECT_ALL_BIODATA)
            return ServiceResult.ok([dict(row) for row in rows])

        except STORAGE_ERRORS as e:
            return self._storage_failure("list", e)

    async def get_by_id(self, record_id: Any) -> ServiceResult:
        pk = parse_record_id(record_id)
        if pk is None:
            return ServiceResult.not_found(record_id)

        try:
            async with self.pool.acquire() as conn:
                self._log_query(SELECT_BIODATA_BY_ID, [pk])
                row = await conn.fetchrow(SELECT_BIODATA_BY_ID, pk)

        except STORAGE_ERRORS as e:
            return self._storage_failure("get", e)

        if row is None:
            return ServiceResult.not_found(record_id)
        return ServiceResult.ok([dict(row)])

    async def create(self, fields: Dict[str, Any]) -> ServiceResult:
        try:
            validate_biodata_fields(fields)
            missing = [field for field in BIODATA_FIELDS if field not in fields]
            if missing:
                raise BiodataValidationError(missing[0], f"{missing[0]} is required")
        except BiodataValidationError as e:
            logger.warning(f"Rejected biodata create: {e.message}")
            return ServiceResult.fail(ErrorType.VALIDATION_ERROR, e.message)

        params = [fields[field] for field in BIODATA_FIELDS]
        try:
            async with self.pool.acquire() as conn:
                self._log_query(INSERT_BIODATA, params)
                new_id = await conn.fetchval(INSERT_BIODATA, *params)

                # Re-read the stored row so the caller sees what was persisted
                row = await conn.fetchrow(SELECT_BIODATA_BY_ID, new_id)

        except asyncpg.UniqueViolationError as e:
            logger.warning(f"Unique constraint violation on create: {e}")
            return ServiceResult.fail(ErrorType.CONFLICT, NIM_TAKEN_MESSAGE)
        except VALIDATION_VIOLATIONS as e:
            logger.warning(f"Constraint violation on create: {e}")
            return self._violation(e)
        except STORAGE_ERRORS as e:
            return self._storage_failure("create", e)

        if row is None:
            logger.error(f"Biodata {new_id} inserted but not found on re-select")
            return ServiceResult.fail(ErrorType.DATABASE_ERROR, "Insert could not be confirmed")

        logger.info(f"Created biodata {new_id}")
        return ServiceResult.ok([dict(row)])

    async def update(self, record_id: Any, fields: Dict[str, Any]) -> ServiceResult:
        pk = parse_record_id(record_id)
        if pk is None:
            return ServiceResult.not_found(record_id)

        try:
            validate_biodata_fields(fields)
            query, params = build_update_query(pk, fields)
        except BiodataValidationError as e:
            logger.warning(f"Rejected biodata update for {pk}: {e.message}")
            return ServiceResult.fail(ErrorType.VALIDATION_ERROR, e.message)
        except ValueError as e:
            return ServiceResult.fail(ErrorType.VALIDATION_ERROR, str(e))

        try:
            async with self.pool.acquire() as conn:
                self._log_query(query, params)
                row = await conn.fetchrow(query, *params)

        except asyncpg.UniqueViolationError as e:
            logger.warning(f"Unique constraint violation on update of {pk}: {e}")
            return ServiceResult.fail(ErrorType.CONFLICT, NIM_TAKEN_MESSAGE)
        except VALIDATION_VIOLATIONS as e:
            logger.warning(f"Constraint violation on update of {pk}: {e}")
            return self._violation(e)
        except STORAGE_ERRORS as e:
            return self._storage_failure("update", e)

        if row is None:
            return ServiceResult.not_found(record_id)

        logger.info(f"Updated biodata {pk}: {sorted(fields)}")
        return ServiceResult.ok([dict(row)])

    async def delete(self, record_id: Any) -> ServiceResult:
        pk = parse_record_id(record_id)
        if pk is None:
            return ServiceResult.not_found(record_id)

        try:
            async with self.pool.acquire() as conn:
                self._log_query(DELETE_BIODATA, [pk])
                status = await conn.execute(DELETE_BIODATA, pk)

        except STORAGE_ERRORS as e:
            return self._storage_failure("delete", e)

        # asyncpg returns "DELETE N" where N is the number of rows
        deleted_count = int(status.split()[-1]) if status else 0
        if deleted_count == 0:
            return ServiceResult.not_found(record_id)

        logger.info(f"Deleted biodata {pk}")
        return ServiceResult.ok([{"id": pk}])

    def _violation(self, exc: asyncpg.PostgresError) -> ServiceResult:
        message = violation_message(
            getattr(exc, "constraint_name", None),
            getattr(exc, "column_name", None),
        )
        return ServiceResult.fail(ErrorType.VALIDATION_ERROR, message)

    def _storage_failure(self, operation: str, exc: Exception) -> ServiceResult:
        logger.error(f"Biodata {operation} failed: {exc}", exc_info=True)
        return ServiceResult.fail(ErrorType.DATABASE_ERROR, f"Database {operation} failed: {exc}")
