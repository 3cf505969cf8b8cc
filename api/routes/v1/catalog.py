"""
api/routes/v1/catalog.py -- CRUD routes for the five catalog collections.

Every collection exposes the same five routes:
  GET    /api/{collection}        -- list, newest first (public)
  GET    /api/{collection}/{id}   -- detail (public)
  POST   /api/{collection}        -- create, 201
  PUT    /api/{collection}/{id}   -- partial update
  DELETE /api/{collection}/{id}   -- delete, 204

Collections and who may write them:
  fabrics, accessories, products            -- create/update/delete: editor, admin
  design-ideas, client-requirements         -- create: any logged-in user
                                               update/delete: editor, admin

The routes are generated by _register() from the _RESOURCES table rather than
written out five times. Handlers are closures over one _Resource, so the
request and response models in their signatures are real classes at
definition time (FastAPI reads them when the route is added).

Each successful mutation writes exactly one audit entry. The entity_type on
the entry is the store kind ("design_ideas"), the route is the concrete path.
"""

from dataclasses import asdict, dataclass
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from api.models import (
    AccessoryCreate,
    AccessoryResponse,
    AccessoryUpdate,
    ClientRequirementCreate,
    ClientRequirementResponse,
    ClientRequirementUpdate,
    DesignIdeaCreate,
    DesignIdeaResponse,
    DesignIdeaUpdate,
    ErrorDetail,
    FabricCreate,
    FabricResponse,
    FabricUpdate,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from audit.logger import AuditLogger
from auth.dependencies import EDITORS, require_role
from auth.models import ROLES, PublicUser
from catalog.models import Accessory, ClientRequirement, DesignIdea, Fabric, Product
from catalog.store import CatalogStore

router = APIRouter()

_ANY_ROLE = frozenset(ROLES)


@dataclass(frozen=True)
class _Resource:
    path: str  # URL segment under /api
    kind: str  # CatalogStore kind, also the audit entity_type
    label: str  # human-readable singular, for error messages
    record: type
    create_body: type[BaseModel]
    update_body: type[BaseModel]
    response: type[BaseModel]
    create_roles: frozenset[str] = EDITORS
    write_roles: frozenset[str] = EDITORS


_RESOURCES = (
    _Resource("fabrics", "fabrics", "Fabric", Fabric, FabricCreate, FabricUpdate, FabricResponse),
    _Resource("accessories", "accessories", "Accessory", Accessory, AccessoryCreate, AccessoryUpdate, AccessoryResponse),
    _Resource("products", "products", "Product", Product, ProductCreate, ProductUpdate, ProductResponse),
    _Resource(
        "design-ideas",
        "design_ideas",
        "Design idea",
        DesignIdea,
        DesignIdeaCreate,
        DesignIdeaUpdate,
        DesignIdeaResponse,
        create_roles=_ANY_ROLE,
    ),
    _Resource(
        "client-requirements",
        "client_requirements",
        "Client requirement",
        ClientRequirement,
        ClientRequirementCreate,
        ClientRequirementUpdate,
        ClientRequirementResponse,
        create_roles=_ANY_ROLE,
    ),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _not_found(res: _Resource, record_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(code="not_found", message=f"{res.label} {record_id} not found.").model_dump(),
    )


def _conflict(res: _Resource) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=ErrorDetail(code="conflict", message=f"{res.label} with this code already exists.").model_dump(),
    )


def _check_price_range(existing: Any, changes: dict[str, Any]) -> None:
    """Reject a partial update that leaves price_range_min above price_range_max."""
    low = changes.get("price_range_min", getattr(existing, "price_range_min", None))
    high = changes.get("price_range_max", getattr(existing, "price_range_max", None))
    if low is not None and high is not None and low > high:
        raise HTTPException(
            status_code=422,
            detail=ErrorDetail(
                code="validation_failure",
                message="price_range_min must not exceed price_range_max",
            ).model_dump(),
        )


def _audit_metadata(values: dict[str, Any]) -> dict[str, Any]:
    # Names only: enough to see what changed without copying whole records into the log.
    return {"fields": sorted(values)}


# ---------------------------------------------------------------------------
# Route factory
# ---------------------------------------------------------------------------


def _register(router: APIRouter, res: _Resource) -> None:
    collection = f"/{res.path}"
    item = f"/{res.path}/{{record_id}}"
    tag = res.path.replace("-", " ").capitalize()

    CreateBody = res.create_body
    UpdateBody = res.update_body
    Out = res.response

    def list_records(request: Request) -> list[Out]:
        catalog: CatalogStore = request.app.state.catalog
        return [Out.from_record(r) for r in catalog.list_records(res.kind)]

    def get_record(request: Request, record_id: int) -> Out:
        catalog: CatalogStore = request.app.state.catalog
        record = catalog.get(res.kind, record_id)
        if record is None:
            raise _not_found(res, record_id)
        return Out.from_record(record)

    def create_record(
        request: Request,
        body: CreateBody,
        user: PublicUser = Depends(require_role(res.create_roles)),
    ) -> Out:
        catalog: CatalogStore = request.app.state.catalog
        values = body.model_dump()
        if "created_by" in values and not values["created_by"]:
            values["created_by"] = user.name
        try:
            record_id = catalog.create(res.record(**values))
        except IntegrityError:
            raise _conflict(res) from None
        created = catalog.get(res.kind, record_id)

        audit: AuditLogger = request.app.state.audit
        audit.record(
            user.id,
            request.method,
            request.url.path,
            "CREATE",
            entity_type=res.kind,
            entity_id=record_id,
            metadata=_audit_metadata(values),
        )
        return Out.from_record(created)

    def update_record(
        request: Request,
        record_id: int,
        body: UpdateBody,
        user: PublicUser = Depends(require_role(res.write_roles)),
    ) -> Out:
        catalog: CatalogStore = request.app.state.catalog
        existing = catalog.get(res.kind, record_id)
        if existing is None:
            raise _not_found(res, record_id)
        changes = body.model_dump(exclude_unset=True)
        if "price_range_min" in asdict(existing):
            _check_price_range(existing, changes)
        try:
            found = catalog.update(res.kind, record_id, **changes)
        except IntegrityError:
            raise _conflict(res) from None
        if not found:
            # Deleted between the read and the write.
            raise _not_found(res, record_id)
        updated = catalog.get(res.kind, record_id)

        audit: AuditLogger = request.app.state.audit
        audit.record(
            user.id,
            request.method,
            request.url.path,
            "UPDATE",
            entity_type=res.kind,
            entity_id=record_id,
            metadata=_audit_metadata(changes),
        )
        return Out.from_record(updated)

    def delete_record(
        request: Request,
        record_id: int,
        user: PublicUser = Depends(require_role(res.write_roles)),
    ) -> Response:
        catalog: CatalogStore = request.app.state.catalog
        if not catalog.delete(res.kind, record_id):
            raise _not_found(res, record_id)

        audit: AuditLogger = request.app.state.audit
        audit.record(
            user.id,
            request.method,
            request.url.path,
            "DELETE",
            entity_type=res.kind,
            entity_id=record_id,
        )
        return Response(status_code=204)

    name = res.kind
    router.add_api_route(
        collection, list_records, methods=["GET"], response_model=list[Out], tags=[tag], name=f"list_{name}"
    )
    router.add_api_route(
        collection,
        create_record,
        methods=["POST"],
        response_model=Out,
        status_code=201,
        tags=[tag],
        name=f"create_{name}",
    )
    router.add_api_route(item, get_record, methods=["GET"], response_model=Out, tags=[tag], name=f"get_{name}")
    router.add_api_route(
        item, update_record, methods=["PUT"], response_model=Out, tags=[tag], name=f"update_{name}"
    )
    router.add_api_route(
        item, delete_record, methods=["DELETE"], status_code=204, tags=[tag], name=f"delete_{name}"
    )


for _res in _RESOURCES:
    _register(router, _res)
