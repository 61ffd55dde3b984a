import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional, Sequence, Type, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import config
from core.db.base import Base
from core.exceptions.base import StorageUnavailableException, ValidationException
from core.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class PersistenceGateway:
    """
    Narrow query/insert/update interface over an async session.

    Every call runs under a bounded timeout. Timeouts and driver errors roll
    the session back and surface as StorageUnavailableException so callers can
    decide whether to retry. Query results are ordered newest first.
    """

    def __init__(self, db_session: AsyncSession, timeout: Optional[float] = None):
        self.db_session = db_session
        self.timeout = timeout if timeout is not None else config.DATABASE_TIMEOUT_SECONDS

    @asynccontextmanager
    async def _guard(self, operation: str, table: str) -> AsyncIterator[None]:
        try:
            async with asyncio.timeout(self.timeout):
                yield
        except TimeoutError as exc:
            await self._rollback()
            logger.error(f"Storage timeout during {operation} on {table}")
            raise StorageUnavailableException(
                message=f"Storage timed out during {operation}",
                data={"operation": operation, "table": table},
            ) from exc
        except IntegrityError as exc:
            await self._rollback()
            logger.warning(f"Integrity error during {operation} on {table}: {exc.orig}")
            raise ValidationException(
                message="Record conflicts with existing data",
                data={"operation": operation, "table": table},
            ) from exc
        except SQLAlchemyError as exc:
            await self._rollback()
            logger.error(f"Storage failure during {operation} on {table}: {exc}")
            raise StorageUnavailableException(
                data={"operation": operation, "table": table},
            ) from exc

    async def _rollback(self) -> None:
        try:
            await self.db_session.rollback()
        except SQLAlchemyError as exc:
            logger.error(f"Rollback failed: {exc}")

    async def get(self, model: Type[ModelT], id: str) -> Optional[ModelT]:
        """Fetch a single row by primary key, or None."""
        rows = await self.query(model, {"id": id})
        return rows[0] if rows else None

    async def query(
        self,
        model: Type[ModelT],
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Sequence[ModelT]:
        """Return rows matching every equality filter, created_at descending."""
        conditions = [getattr(model, field) == value for field, value in (filters or {}).items()]
        stmt = (
            select(model)
            .where(*conditions)
            .order_by(model.created_at.desc())
            .execution_options(populate_existing=True)
        )
        async with self._guard("query", model.__tablename__):
            result = await self.db_session.execute(stmt)
            return result.scalars().all()

    async def insert(self, model: Type[ModelT], values: Mapping[str, Any]) -> str:
        """Insert one row and return its id."""
        instance = model(**values)
        async with self._guard("insert", model.__tablename__):
            self.db_session.add(instance)
            await self.db_session.commit()
        return instance.id

    async def update(
        self,
        model: Type[ModelT],
        id: str,
        patch: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> int:
        """
        Apply ``patch`` to the row with ``id`` and return the affected row count.

        ``expected`` adds equality guards to the WHERE clause, so
        ``expected={"status": PENDING}`` only writes while the row is still
        pending. Zero affected rows means the row is missing or a guard failed.
        """
        conditions = [model.id == id]
        conditions.extend(
            getattr(model, field) == value for field, value in (expected or {}).items()
        )
        stmt = (
            update(model)
            .where(*conditions)
            .values(**patch)
            .execution_options(synchronize_session=False)
        )
        async with self._guard("update", model.__tablename__):
            result = await self.db_session.execute(stmt)
            await self.db_session.commit()
        return result.rowcount
