"""SQL-backed storage for bot user records keyed by phone number."""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Protocol

from sqlalchemy import (
    Column,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    insert,
    select,
    update,
)
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Engine, Row

from workspace_auth.core.config import DatabaseSettings
from workspace_auth.models.user import UserRecord

metadata = MetaData()

users_table = Table(
    "users",
    metadata,
    Column("phone", String(64), primary_key=True),
    Column("refresh_token", Text, nullable=True),
)

SUPPORTED_DIALECTS = ("mysql", "postgresql", "sqlite")


class UserRecordStore(Protocol):
    """Operations the token services need from user storage."""

    async def find_by_phone(self, phone: str) -> Optional[UserRecord]: ...

    async def insert(
        self, phone: str, refresh_token: Optional[str] = None
    ) -> UserRecord: ...

    async def update_refresh_token(self, phone: str, refresh_token: str) -> bool: ...

    async def upsert_refresh_token(
        self, phone: str, refresh_token: str
    ) -> UserRecord: ...


def build_engine(settings: DatabaseSettings) -> Engine:
    """Create a pooled engine with a fixed cap and an unbounded wait queue."""
    url = settings.sqlalchemy_url()
    engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if str(url).startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs.update(
            pool_size=settings.pool_size,
            max_overflow=0,
            pool_timeout=settings.pool_timeout,
        )
    return create_engine(url, **engine_kwargs)


class SQLUserRecordStore:
    """User records persisted through a SQLAlchemy connection pool.

    Every call checks out one connection, runs a single statement in its own
    transaction and hands the connection back. Blocking driver work runs in a
    worker thread.
    """

    def __init__(self, engine: Engine) -> None:
        if engine.dialect.name not in SUPPORTED_DIALECTS:
            raise ValueError(
                f"Unsupported database dialect {engine.dialect.name!r}; "
                f"expected one of {', '.join(SUPPORTED_DIALECTS)}."
            )
        self._engine = engine

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "SQLUserRecordStore":
        return cls(build_engine(settings))

    def ensure_schema(self) -> None:
        metadata.create_all(self._engine, tables=[users_table])

    def dispose(self) -> None:
        """Close every pooled connection."""
        self._engine.dispose()

    async def find_by_phone(self, phone: str) -> Optional[UserRecord]:
        def _execute_find() -> Optional[UserRecord]:
            with self._engine.connect() as conn:
                row = conn.execute(
                    select(users_table).where(users_table.c.phone == phone)
                ).first()
            return self._row_to_record(row) if row else None

        return await asyncio.to_thread(_execute_find)

    async def insert(
        self, phone: str, refresh_token: Optional[str] = None
    ) -> UserRecord:
        record = UserRecord(phone=phone, refresh_token=refresh_token)

        def _execute_insert() -> None:
            with self._engine.begin() as conn:
                conn.execute(insert(users_table).values(**record.model_dump()))

        await asyncio.to_thread(_execute_insert)
        return record

    async def update_refresh_token(self, phone: str, refresh_token: str) -> bool:
        """Update the token of an existing record. Returns False when none matched."""

        def _execute_update() -> int:
            with self._engine.begin() as conn:
                result = conn.execute(
                    update(users_table)
                    .where(users_table.c.phone == phone)
                    .values(refresh_token=refresh_token)
                )
            return result.rowcount

        return await asyncio.to_thread(_execute_update) > 0

    async def upsert_refresh_token(self, phone: str, refresh_token: str) -> UserRecord:
        """Insert the record or overwrite its token in one atomic statement."""

        def _execute_upsert() -> Optional[UserRecord]:
            statement = self._upsert_statement(phone, refresh_token)
            with self._engine.begin() as conn:
                conn.execute(statement)
                row = conn.execute(
                    select(users_table).where(users_table.c.phone == phone)
                ).first()
            return self._row_to_record(row) if row else None

        record = await asyncio.to_thread(_execute_upsert)
        if record is None:  # pragma: no cover - row vanished mid-transaction
            raise RuntimeError(f"Upserted user record for {phone} is missing.")
        return record

    def _upsert_statement(self, phone: str, refresh_token: str):
        values = {"phone": phone, "refresh_token": refresh_token}
        dialect = self._engine.dialect.name
        if dialect == "mysql":
            statement = mysql.insert(users_table).values(**values)
            return statement.on_duplicate_key_update(
                refresh_token=statement.inserted.refresh_token,
            )
        if dialect in ("sqlite", "postgresql"):
            dialect_insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            statement = dialect_insert(users_table).values(**values)
            return statement.on_conflict_do_update(
                index_elements=[users_table.c.phone],
                set_={"refresh_token": statement.excluded.refresh_token},
            )
        raise ValueError(f"Atomic upsert is not supported for {dialect!r}.")

    @staticmethod
    def _row_to_record(row: Row) -> UserRecord:
        return UserRecord(phone=row.phone, refresh_token=row.refresh_token)


__all__ = [
    "SQLUserRecordStore",
    "SUPPORTED_DIALECTS",
    "UserRecordStore",
    "build_engine",
    "users_table",
]
