"""
api/routes/v1/audit.py -- Read access to the operation log.

Routes:
  GET /api/operation-logs -- filtered audit trail, newest first (admin only)

Query parameters (camelCase, as the web client sends them):
  userId      -- only entries by this user
  entityType  -- only entries for this entity type ("fabrics", "users", ...)
  startDate   -- inclusive lower bound, ISO 8601 date or datetime
  endDate     -- inclusive upper bound, ISO 8601 date or datetime

Naive datetimes are interpreted as UTC. A bare date means midnight UTC at the
start of that day, for both bounds. An unparseable date is a 422, never an
empty result. Empty parameters count as absent.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.models import ErrorDetail, OperationLogResponse
from audit.logger import AuditLogger
from auth.dependencies import require_admin
from core.db import from_iso

# Auth policy:
# - GET /api/operation-logs: admin only
router = APIRouter(dependencies=[Depends(require_admin)])


def _invalid(name: str, value: str, expected: str) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=ErrorDetail(
            code="validation_failure",
            message=f"{name} must be {expected}.",
            detail=value,
        ).model_dump(),
    )


def _parse_user_id(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise _invalid("userId", value, "an integer") from None


def _parse_bound(name: str, value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        # Out-of-range offsets only overflow once shifted to UTC.
        return from_iso(value.replace("Z", "+00:00")).astimezone(timezone.utc)
    except (ValueError, OverflowError):
        raise _invalid(name, value, "an ISO 8601 date or datetime") from None


@router.get("/operation-logs", response_model=list[OperationLogResponse])
def list_operation_logs(
    request: Request,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    entity_type: Optional[str] = Query(default=None, alias="entityType", max_length=50),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
) -> list[OperationLogResponse]:
    """Return audit entries matching every supplied filter."""
    uid = _parse_user_id(user_id)
    start = _parse_bound("startDate", start_date)
    end = _parse_bound("endDate", end_date)
    audit: AuditLogger = request.app.state.audit
    logs = audit.store.query(user_id=uid, entity_type=entity_type or None, start=start, end=end)
    return [OperationLogResponse.from_log(log) for log in logs]
