"""
api/routes/v1/statistics.py -- Aggregated catalog totals for the home screen.

Read-only aggregate route -- no mutations here.
"""

from fastapi import APIRouter, Request

from api.models import StatisticsResponse
from catalog.store import CatalogStore

# Auth policy:
# - GET /api/statistics: public -- totals carry no per-record data
router = APIRouter()


@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(request: Request) -> StatisticsResponse:
    """Return catalog totals.

    Response:
      total_fabrics         -- number of fabrics
      total_accessories     -- number of accessories
      total_products        -- number of products
      active_design_ideas   -- design ideas with status "in_progress"
      pending_requirements  -- client requirements with status "pending"
    """
    catalog: CatalogStore = request.app.state.catalog
    return StatisticsResponse(**catalog.get_statistics())
