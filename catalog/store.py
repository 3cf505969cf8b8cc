"""
catalog/store.py -- SQLAlchemy-backed persistence layer for catalog entities.

Uses SQLAlchemy Core (not ORM) so the dataclasses in catalog/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. CatalogStore is one repository over five
tables that share the same shape of operations (list, get, create, update,
delete). Each table is registered in _ENTITIES with the dataclass it maps to
and the columns that need conversion:
  money -- Decimal values stored as text so no precision is lost in SQLite.
  lists -- list[str] values stored as a JSON array in a TEXT column.

Security: all queries use bound parameters. Column names for updates are
checked against the table definition before use.

Usage:
    store = CatalogStore()
    fabric_id = store.create(Fabric(name="Linen", color="sand", width=140, gram_weight=210, price=Decimal("12.50")))
    store.update("fabrics", fabric_id, color="oat")
    store.list_records("fabrics")
    store.close()
"""

import json
from dataclasses import asdict, dataclass, fields
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from catalog.models import Accessory, ClientRequirement, DesignIdea, Fabric, Product
from core.config import get_settings
from core.db import make_engine, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_fabrics = Table(
    "fabrics",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("color", String(100), nullable=False),
    Column("width", Integer, nullable=False),
    Column("gram_weight", Integer, nullable=False),
    Column("price", String(20), nullable=False),
    Column("image_url", Text),
    Column("created_at", String(32), nullable=False),
)

_accessories = Table(
    "accessories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("price", String(20), nullable=False),
    Column("image_url", Text),
    Column("created_at", String(32), nullable=False),
)

_products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("code", String(100), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("image_url", Text),
    Column("phase", String(20), nullable=False, server_default="produced"),
    Column("cover_cost", String(20)),
    Column("inner_core_cost", String(20)),
    Column("package_cost", String(20)),
    Column("general_cost", String(20)),
    Column("model_url", Text),
    Column("status", String(20), nullable=False, server_default="active"),
    Column("created_at", String(32), nullable=False),
)

_design_ideas = Table(
    "design_ideas",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("image_urls", Text),  # JSON array serialized as text
    Column("demand_analysis", Text),
    Column("negative_reviews", Text),
    Column("redesign_reason", Text),
    Column("price_range_min", String(20)),
    Column("price_range_max", String(20)),
    Column("created_by", String(255), nullable=False),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("created_at", String(32), nullable=False),
)

_client_requirements = Table(
    "client_requirements",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("client_name", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("requirements", Text, nullable=False),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("priority", String(10), nullable=False, server_default="medium"),
    Column("created_at", String(32), nullable=False),
)


@dataclass(frozen=True)
class _Entity:
    table: Table
    model: type
    money: tuple[str, ...] = ()
    lists: tuple[str, ...] = ()


_ENTITIES: dict[str, _Entity] = {
    "fabrics": _Entity(_fabrics, Fabric, money=("price",)),
    "accessories": _Entity(_accessories, Accessory, money=("price",)),
    "products": _Entity(
        _products,
        Product,
        money=("cover_cost", "inner_core_cost", "package_cost", "general_cost"),
    ),
    "design_ideas": _Entity(
        _design_ideas,
        DesignIdea,
        money=("price_range_min", "price_range_max"),
        lists=("image_urls",),
    ),
    "client_requirements": _Entity(_client_requirements, ClientRequirement),
}

_KIND_BY_MODEL: dict[type, str] = {e.model: kind for kind, e in _ENTITIES.items()}

ENTITY_KINDS: tuple[str, ...] = tuple(_ENTITIES)

# Never writable through create()/update().
_SYSTEM_COLUMNS = {"id", "created_at"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _entity(kind: str) -> _Entity:
    try:
        return _ENTITIES[kind]
    except KeyError:
        raise ValueError(f"Unknown catalog entity {kind!r}") from None


def _to_db(entity: _Entity, values: dict[str, Any]) -> dict[str, Any]:
    """Serialize money and list fields for storage."""
    out = dict(values)
    for name in entity.money:
        if name in out and out[name] is not None:
            out[name] = str(out[name])
    for name in entity.lists:
        if name in out:
            out[name] = json.dumps(out[name] or [])
    return out


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CatalogStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        metadata.create_all(self.engine)

    def create(self, record: Any) -> int:
        """Insert a catalog dataclass and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError when a natural key (product code)
        is already taken -- the route layer turns that into 409.
        """
        kind = _KIND_BY_MODEL.get(type(record))
        if kind is None:
            raise ValueError(f"Not a catalog record: {type(record).__name__}")
        entity = _ENTITIES[kind]
        values = {k: v for k, v in asdict(record).items() if k not in _SYSTEM_COLUMNS}
        values["created_at"] = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(entity.table.insert().values(**_to_db(entity, values)))
            conn.commit()
            return result.inserted_primary_key[0]

    def get(self, kind: str, record_id: int) -> Optional[Any]:
        """Fetch a single record by ID. Returns None if not found."""
        entity = _entity(kind)
        with self.engine.connect() as conn:
            row = conn.execute(entity.table.select().where(entity.table.c.id == record_id)).fetchone()
        return _row_to_model(entity, row) if row is not None else None

    def list_records(self, kind: str) -> list[Any]:
        """Return all records of a kind, newest first."""
        entity = _entity(kind)
        with self.engine.connect() as conn:
            rows = conn.execute(
                entity.table.select().order_by(entity.table.c.created_at.desc(), entity.table.c.id.desc())
            ).fetchall()
        return [_row_to_model(entity, r) for r in rows]

    def update(self, kind: str, record_id: int, **values) -> bool:
        """Update a subset of columns on an existing record.

        Returns True if a row was updated, False if record_id was not found.
        Raises ValueError for unknown or system columns and IntegrityError on
        a natural-key collision.
        """
        entity = _entity(kind)
        allowed = set(entity.table.c.keys()) - _SYSTEM_COLUMNS
        unknown = set(values) - allowed
        if unknown:
            raise ValueError(f"Unknown {kind} fields: {unknown!r}")
        if not values:
            return self.get(kind, record_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(
                entity.table.update().where(entity.table.c.id == record_id).values(**_to_db(entity, values))
            )
            conn.commit()
        return result.rowcount > 0

    def delete(self, kind: str, record_id: int) -> bool:
        """Delete a record. Returns True if deleted, False if not found."""
        entity = _entity(kind)
        with self.engine.connect() as conn:
            result = conn.execute(entity.table.delete().where(entity.table.c.id == record_id))
            conn.commit()
        return result.rowcount > 0

    def count(self, kind: str, status: Optional[str] = None) -> int:
        """Count records of a kind, optionally restricted to one status value."""
        entity = _entity(kind)
        stmt = select(func.count()).select_from(entity.table)
        if status is not None:
            stmt = stmt.where(entity.table.c.status == status)
        with self.engine.connect() as conn:
            result = conn.execute(stmt).scalar()
        return result or 0

    def get_statistics(self) -> dict[str, int]:
        """Return the headline totals shown on the home screen."""
        return {
            "total_fabrics": self.count("fabrics"),
            "total_accessories": self.count("accessories"),
            "total_products": self.count("products"),
            "active_design_ideas": self.count("design_ideas", status="in_progress"),
            "pending_requirements": self.count("client_requirements", status="pending"),
        }

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(select(1)).scalar()
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_model(entity: _Entity, row) -> Any:
    data = dict(row._mapping)
    for name in entity.money:
        if data.get(name) is not None:
            data[name] = Decimal(data[name])
    for name in entity.lists:
        data[name] = json.loads(data[name]) if data.get(name) else []
    known = {f.name for f in fields(entity.model)}
    return entity.model(**{k: v for k, v in data.items() if k in known})
