"""
catalog/models.py -- Domain dataclasses for the CushionTrack catalog.

These are pure data containers with zero logic. Persistence lives in
catalog/store.py; validation of incoming payloads lives in api/models.py.

Money fields are Decimal. id is None and created_at is "" before the record
is written to the database.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass
class Fabric:
    name: str
    color: str
    width: int  # cm
    gram_weight: int  # grams per square meter
    price: Decimal
    image_url: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class Accessory:
    name: str
    price: Decimal
    image_url: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class Product:
    """A finished product with its cost breakdown.

    code is the natural key and is unique across products.
    """

    code: str
    name: str
    phase: str = "produced"  # "produced" | "designing"
    status: str = "active"  # "active" | "discontinued"
    image_url: Optional[str] = None
    cover_cost: Optional[Decimal] = None
    inner_core_cost: Optional[Decimal] = None
    package_cost: Optional[Decimal] = None
    general_cost: Optional[Decimal] = None
    model_url: Optional[str] = None  # 3D model
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class DesignIdea:
    title: str
    description: str
    created_by: str
    status: str = "pending"  # "pending" | "in_progress" | "approved" | "rejected"
    image_urls: list[str] = field(default_factory=list)
    demand_analysis: Optional[str] = None
    negative_reviews: Optional[str] = None
    redesign_reason: Optional[str] = None
    price_range_min: Optional[Decimal] = None
    price_range_max: Optional[Decimal] = None
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class ClientRequirement:
    client_name: str
    description: str
    requirements: str
    status: str = "pending"  # "pending" | "in_progress" | "completed" | "cancelled"
    priority: str = "medium"  # "low" | "medium" | "high"
    id: Optional[int] = None
    created_at: str = ""
