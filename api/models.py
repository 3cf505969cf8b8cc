"""
API request and response models for CushionTrack REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py,
audit/models.py and catalog/models.py, which own the internal domain
representation. Route handlers map between the two.

Validation failures on any of these models surface as 422 validation_failure
before a handler runs, so no mutation is attempted on malformed input.
"""

from dataclasses import asdict
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from audit.models import OperationLog
from auth.models import PublicUser
from auth.tokens import MAX_PASSWORD_BYTES

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    guest = "guest"
    editor = "editor"
    admin = "admin"


class PhaseEnum(str, Enum):
    produced = "produced"
    designing = "designing"


class ProductStatusEnum(str, Enum):
    active = "active"
    discontinued = "discontinued"


class IdeaStatusEnum(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    approved = "approved"
    rejected = "rejected"


class RequirementStatusEnum(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class PriorityEnum(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    """Request body for POST /api/register.

    Unknown fields are dropped, so a client-supplied "role" never reaches the
    handler. Passwords are not whitespace-stripped.
    """

    model_config = ConfigDict(extra="ignore")

    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    """Request body for POST /api/login."""

    model_config = ConfigDict(extra="ignore")

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class UserCreate(BaseModel):
    """Request body for POST /api/users (admin provisioning)."""

    model_config = ConfigDict(extra="ignore")

    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)
    role: RoleEnum = RoleEnum.guest

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value: str) -> str:
        return _check_password_bytes(value)


class UserPatch(BaseModel):
    """Request body for PATCH /api/users/{id}. At least one field is required."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    role: Optional[RoleEnum] = None


# ---------------------------------------------------------------------------
# Auth / audit -- response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public user profile. There is no field that could carry a password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: str
    role: str
    created_at: str

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(**asdict(user))


class OperationLogResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: Optional[int]
    method: str
    route: str
    action: str
    entity_type: Optional[str]
    entity_id: Optional[str]
    metadata: Optional[str]
    created_at: str

    @classmethod
    def from_log(cls, log: OperationLog) -> "OperationLogResponse":
        return cls(**asdict(log))


# ---------------------------------------------------------------------------
# Catalog -- shared bases
# ---------------------------------------------------------------------------


class _CatalogWrite(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, validate_default=True, extra="ignore")


class _PartialUpdate(_CatalogWrite):
    """Base for PUT bodies: every field optional, explicit null only where the column allows it."""

    required_columns: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in self.model_fields_set & self.required_columns:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class _CatalogResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: str

    @classmethod
    def from_record(cls, record: Any):
        return cls(**asdict(record))


# ---------------------------------------------------------------------------
# Catalog -- fabrics
# ---------------------------------------------------------------------------


class FabricCreate(_CatalogWrite):
    name: str = Field(min_length=1, max_length=255)
    color: str = Field(min_length=1, max_length=100)
    width: int = Field(gt=0, description="Width in cm")
    gram_weight: int = Field(gt=0, description="Grams per square meter")
    price: _Money
    image_url: Optional[str] = Field(default=None, max_length=2048)


class FabricUpdate(_PartialUpdate):
    required_columns: ClassVar[frozenset[str]] = frozenset({"name", "color", "width", "gram_weight", "price"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    color: Optional[str] = Field(default=None, min_length=1, max_length=100)
    width: Optional[int] = Field(default=None, gt=0)
    gram_weight: Optional[int] = Field(default=None, gt=0)
    price: Optional[_Money] = None
    image_url: Optional[str] = Field(default=None, max_length=2048)


class FabricResponse(_CatalogResponse):
    name: str
    color: str
    width: int
    gram_weight: int
    price: Decimal
    image_url: Optional[str]


# ---------------------------------------------------------------------------
# Catalog -- accessories
# ---------------------------------------------------------------------------


class AccessoryCreate(_CatalogWrite):
    name: str = Field(min_length=1, max_length=255)
    price: _Money
    image_url: Optional[str] = Field(default=None, max_length=2048)


class AccessoryUpdate(_PartialUpdate):
    required_columns: ClassVar[frozenset[str]] = frozenset({"name", "price"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[_Money] = None
    image_url: Optional[str] = Field(default=None, max_length=2048)


class AccessoryResponse(_CatalogResponse):
    name: str
    price: Decimal
    image_url: Optional[str]


# ---------------------------------------------------------------------------
# Catalog -- products
# ---------------------------------------------------------------------------


class ProductCreate(_CatalogWrite):
    code: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    phase: PhaseEnum = PhaseEnum.produced
    status: ProductStatusEnum = ProductStatusEnum.active
    image_url: Optional[str] = Field(default=None, max_length=2048)
    cover_cost: Optional[_Money] = None
    inner_core_cost: Optional[_Money] = None
    package_cost: Optional[_Money] = None
    general_cost: Optional[_Money] = None
    model_url: Optional[str] = Field(default=None, max_length=2048)


class ProductUpdate(_PartialUpdate):
    required_columns: ClassVar[frozenset[str]] = frozenset({"code", "name", "phase", "status"})

    code: Optional[str] = Field(default=None, min_length=1, max_length=100)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phase: Optional[PhaseEnum] = None
    status: Optional[ProductStatusEnum] = None
    image_url: Optional[str] = Field(default=None, max_length=2048)
    cover_cost: Optional[_Money] = None
    inner_core_cost: Optional[_Money] = None
    package_cost: Optional[_Money] = None
    general_cost: Optional[_Money] = None
    model_url: Optional[str] = Field(default=None, max_length=2048)


class ProductResponse(_CatalogResponse):
    code: str
    name: str
    phase: str
    status: str
    image_url: Optional[str]
    cover_cost: Optional[Decimal]
    inner_core_cost: Optional[Decimal]
    package_cost: Optional[Decimal]
    general_cost: Optional[Decimal]
    model_url: Optional[str]


# ---------------------------------------------------------------------------
# Catalog -- design ideas
# ---------------------------------------------------------------------------


class DesignIdeaCreate(_CatalogWrite):
    """created_by defaults to the caller's display name when omitted."""

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    created_by: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: IdeaStatusEnum = IdeaStatusEnum.pending
    image_urls: list[str] = Field(default_factory=list, max_length=20)
    demand_analysis: Optional[str] = None
    negative_reviews: Optional[str] = None
    redesign_reason: Optional[str] = None
    price_range_min: Optional[_Money] = None
    price_range_max: Optional[_Money] = None

    @model_validator(mode="after")
    def check_price_range(self):
        if (
            self.price_range_min is not None
            and self.price_range_max is not None
            and self.price_range_min > self.price_range_max
        ):
            raise ValueError("price_range_min must not exceed price_range_max")
        return self


class DesignIdeaUpdate(_PartialUpdate):
    required_columns: ClassVar[frozenset[str]] = frozenset(
        {"title", "description", "created_by", "status", "image_urls"}
    )

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    created_by: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[IdeaStatusEnum] = None
    image_urls: Optional[list[str]] = Field(default=None, max_length=20)
    demand_analysis: Optional[str] = None
    negative_reviews: Optional[str] = None
    redesign_reason: Optional[str] = None
    price_range_min: Optional[_Money] = None
    price_range_max: Optional[_Money] = None


class DesignIdeaResponse(_CatalogResponse):
    title: str
    description: str
    created_by: str
    status: str
    image_urls: list[str]
    demand_analysis: Optional[str]
    negative_reviews: Optional[str]
    redesign_reason: Optional[str]
    price_range_min: Optional[Decimal]
    price_range_max: Optional[Decimal]


# ---------------------------------------------------------------------------
# Catalog -- client requirements
# ---------------------------------------------------------------------------


class ClientRequirementCreate(_CatalogWrite):
    client_name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    requirements: str = Field(min_length=1)
    status: RequirementStatusEnum = RequirementStatusEnum.pending
    priority: PriorityEnum = PriorityEnum.medium


class ClientRequirementUpdate(_PartialUpdate):
    required_columns: ClassVar[frozenset[str]] = frozenset(
        {"client_name", "description", "requirements", "status", "priority"}
    )

    client_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    requirements: Optional[str] = Field(default=None, min_length=1)
    status: Optional[RequirementStatusEnum] = None
    priority: Optional[PriorityEnum] = None


class ClientRequirementResponse(_CatalogResponse):
    client_name: str
    description: str
    requirements: str
    status: str
    priority: str


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class StatisticsResponse(BaseModel):
    """Response for GET /api/statistics."""

    model_config = ConfigDict(frozen=True)

    total_fabrics: int
    total_accessories: int
    total_products: int
    active_design_ideas: int
    pending_requirements: int
