"""
audit/store.py -- SQLAlchemy Core persistence layer for the operation log.

The table is append-only from the application's point of view. The one
exception is detach_user(), which nulls user_id when an account is deleted so
that the trail survives with an anonymous actor instead of a dangling id.

Ordering: created_at DESC, then id DESC. Two concurrent writers can land on
the same timestamp; the autoincrement id breaks the tie deterministically.

Layer rule: no imports from api/, auth/, or catalog/.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from audit.models import ACTIONS, OperationLog
from core.config import get_settings
from core.db import make_engine, now_iso, to_iso

_metadata = MetaData()

_operation_logs = Table(
    "operation_logs",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, index=True),  # NULL = system or deleted user
    Column("method", String(10), nullable=False),
    Column("route", String(255), nullable=False),
    Column("action", String(10), nullable=False),
    Column("entity_type", String(50), index=True),
    Column("entity_id", String(64)),
    Column("metadata", Text),  # JSON, opaque to the store
    Column("created_at", String(32), nullable=False, index=True),
)


class OperationLogStore:
    """Repository for OperationLog entries.

    Usage:
        logs = OperationLogStore()
        logs.append(user_id=1, method="POST", route="/api/fabrics", action="CREATE",
                    entity_type="fabrics", entity_id="7")
        recent = logs.query(entity_type="fabrics")
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    def append(
        self,
        user_id: int | None,
        method: str,
        route: str,
        action: str,
        entity_type: str | None = None,
        entity_id: str | int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Insert one entry and return its id.

        Raises ValueError for an action outside ACTIONS. metadata is
        serialized with json.dumps(default=str) so Decimal and datetime
        values survive.
        """
        if action not in ACTIONS:
            raise ValueError(f"Unknown audit action {action!r}; expected one of {ACTIONS}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _operation_logs.insert().values(
                    user_id=user_id,
                    method=method.upper(),
                    route=route,
                    action=action,
                    entity_type=entity_type,
                    entity_id=str(entity_id) if entity_id is not None else None,
                    metadata=json.dumps(metadata, default=str) if metadata is not None else None,
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def query(
        self,
        user_id: int | None = None,
        entity_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[OperationLog]:
        """Return entries matching every supplied filter, newest first.

        A None filter leaves that dimension unconstrained. start and end are
        inclusive bounds on created_at; naive datetimes are taken as UTC.
        """
        stmt = _operation_logs.select()
        if user_id is not None:
            stmt = stmt.where(_operation_logs.c.user_id == user_id)
        if entity_type is not None:
            stmt = stmt.where(_operation_logs.c.entity_type == entity_type)
        if start is not None:
            stmt = stmt.where(_operation_logs.c.created_at >= to_iso(start))
        if end is not None:
            stmt = stmt.where(_operation_logs.c.created_at <= to_iso(end))
        stmt = stmt.order_by(_operation_logs.c.created_at.desc(), _operation_logs.c.id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_log(r) for r in rows]

    def detach_user(self, user_id: int) -> int:
        """Null out user_id on every entry by a deleted user. Returns rows touched."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _operation_logs.update().where(_operation_logs.c.user_id == user_id).values(user_id=None)
            )
            conn.commit()
        return result.rowcount

    def ping(self) -> bool:
        """Cheap connectivity probe for the health endpoint."""
        with self.engine.connect() as conn:
            conn.execute(_operation_logs.select().limit(1)).fetchall()
        return True

    def close(self) -> None:
        self.engine.dispose()


def _row_to_log(row) -> OperationLog:
    return OperationLog(
        id=row.id,
        user_id=row.user_id,
        method=row.method,
        route=row.route,
        action=row.action,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        metadata=row._mapping["metadata"],
        created_at=row.created_at,
    )
