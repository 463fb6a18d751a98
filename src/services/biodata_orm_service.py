"""
Biodata storage through the SQLAlchemy ORM
"""

import logging
from typing import Any, Dict, Optional

import sqlalchemy as sa
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from database.connection import create_db_engine
from models.biodata import (
    BIODATA_FIELDS,
    NIM_TAKEN_MESSAGE,
    SEED_RECORDS,
    BiodataValidationError,
    violation_message,
)
from models.orm import Base, Biodata
from services.base_service import BaseBiodataService, ErrorType, ServiceResult, parse_record_id

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
# not_null_violation, check_violation, string_data_right_truncation
VALIDATION_SQLSTATES = {"23502", "23514", "22001"}

STORAGE_ERRORS = (SQLAlchemyError, OSError)


def get_sqlstate(exc: DBAPIError) -> Optional[str]:
    """SQLSTATE of the driver error wrapped by a SQLAlchemy exception"""
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def get_diagnostic(exc: DBAPIError, name: str) -> Optional[str]:
    """Diagnostic field (constraint_name, column_name) of the wrapped driver error"""
    orig = getattr(exc, "orig", None)
    # the asyncpg adapter chains the native asyncpg exception as __cause__
    for error in (orig, getattr(orig, "__cause__", None)):
        value = getattr(error, name, None)
        if isinstance(value, str):
            return value
    return None


def classify_db_error(exc: DBAPIError) -> ServiceResult:
    """Map a driver error to the biodata error taxonomy"""
    sqlstate = get_sqlstate(exc)
    if sqlstate == UNIQUE_VIOLATION:
        return ServiceResult.fail(ErrorType.CONFLICT, NIM_TAKEN_MESSAGE)
    if sqlstate in VALIDATION_SQLSTATES:
        message = violation_message(get_diagnostic(exc, "constraint_name"), get_diagnostic(exc, "column_name"))
        return ServiceResult.fail(ErrorType.VALIDATION_ERROR, message)
    return ServiceResult.fail(ErrorType.DATABASE_ERROR, f"Database operation failed: {exc}")


class BiodataORMService(BaseBiodataService):
    """Single-table CRUD through AsyncSession and the Biodata model"""

    backend_name = "SQLAlchemy"

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        command_timeout: float = 60,
        echo: bool = False,
        engine: Optional[AsyncEngine] = None,
    ):
        self.database_url = database_url
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self.echo = echo
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False) if engine else None

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            raise RuntimeError("Database engine not initialized")
        return self._session_factory

    async def connect(self) -> None:
        if self._engine is None:
            self._engine = create_db_engine(
                self.database_url,
                pool_size=self.pool_size,
                command_timeout=self.command_timeout,
                echo=self.echo,
            )
            self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

        # Test connection
        async with self._engine.connect() as conn:
            await conn.execute(sa.text("SELECT 1"))
        logger.info("Database engine initialized successfully")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
        logger.info("Database connections closed")

    async def sync_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Database engine not initialized")
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Biodata model synchronized")

    async def seed_if_empty(self) -> int:
        async with self.session_factory() as session:
            count = await session.scalar(sa.select(sa.func.count()).select_from(Biodata))
            if count:
                return 0
            session.add_all([Biodata(**record) for record in SEED_RECORDS])
            await session.commit()

        logger.info(f"Seeded biodata table with {len(SEED_RECORDS)} example records")
        return len(SEED_RECORDS)

    async def list_all(self) -> ServiceResult:
        try:
            async with self.session_factory() as session:
                rows = await session.scalars(sa.select(Biodata).order_by(Biodata.id.asc()))
                return ServiceResult.ok([row.to_dict() for row in rows])

        except STORAGE_ERRORS as e:
            return self._storage_failure("list", e)

    async def get_by_id(self, record_id: Any) -> ServiceResult:
        pk = parse_record_id(record_id)
        if pk is None:
            return ServiceResult.not_found(record_id)

        try:
            async with self.session_factory() as session:
                row = await session.get(Biodata, pk)
                if row is None:
                    return ServiceResult.not_found(record_id)
                return ServiceResult.ok([row.to_dict()])

        except STORAGE_ERRORS as e:
            return self._storage_failure("get", e)

    async def create(self, fields: Dict[str, Any]) -> ServiceResult:
        try:
            missing = [field for field in BIODATA_FIELDS if field not in fields]
            if missing:
                raise BiodataValidationError(missing[0], f"{missing[0]} is required")
            row = Biodata(**{field: fields[field] for field in BIODATA_FIELDS})
        except BiodataValidationError as e:
            logger.warning(f"Rejected biodata create: {e.message}")
            return ServiceResult.fail(ErrorType.VALIDATION_ERROR, e.message)

        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                logger.info(f"Created biodata {row.id}")
                return ServiceResult.ok([row.to_dict()])

        except DBAPIError as e:
            return self._db_failure("create", e)
        except STORAGE_ERRORS as e:
            return self._storage_failure("create", e)

    async def update(self, record_id: Any, fields: Dict[str, Any]) -> ServiceResult:
        pk = parse_record_id(record_id)
        if pk is None:
            return ServiceResult.not_found(record_id)

        try:
            async with self.session_factory() as session:
                row = await session.get(Biodata, pk)
                if row is None:
                    return ServiceResult.not_found(record_id)

                for field, value in fields.items():
                    if field not in BIODATA_FIELDS:
                        raise BiodataValidationError(field, f"unknown field: {field}")
                    setattr(row, field, value)

                await session.commit()
                logger.info(f"Updated biodata {pk}: {sorted(fields)}")
                return ServiceResult.ok([row.to_dict()])

        except BiodataValidationError as e:
            logger.warning(f"Rejected biodata update for {pk}: {e.message}")
            return ServiceResult.fail(ErrorType.VALIDATION_ERROR, e.message)
        except DBAPIError as e:
            return self._db_failure("update", e)
        except STORAGE_ERRORS as e:
            return self._storage_failure("update", e)

    async def delete(self, record_id: Any) -> ServiceResult:
        pk = parse_record_id(record_id)
        if pk is None:
            return ServiceResult.not_found(record_id)

        try:
            async with self.session_factory() as session:
                row = await session.get(Biodata, pk)
                if row is None:
                    return ServiceResult.not_found(record_id)
                await session.delete(row)
                await session.commit()

        except STORAGE_ERRORS as e:
            return self._storage_failure("delete", e)

        logger.info(f"Deleted biodata {pk}")
        return ServiceResult.ok([{"id": pk}])

    def _db_failure(self, operation: str, exc: DBAPIError) -> ServiceResult:
        result = classify_db_error(exc)
        if result.error_type == ErrorType.DATABASE_ERROR:
            logger.error(f"Biodata {operation} failed: {exc}", exc_info=True)
        else:
            logger.warning(f"Constraint violation on {operation}: {exc.orig}")
        return result

    def _storage_failure(self, operation: str, exc: Exception) -> ServiceResult:
        logger.error(f"Biodata {operation} failed: {exc}", exc_info=True)
        return ServiceResult.fail(ErrorType.DATABASE_ERROR, f"Database {operation} failed: {exc}")
