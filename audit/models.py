"""
audit/models.py -- Domain dataclass for operation log entries.

Pure data container. OperationLogStore writes and reads these; AuditLogger
decides when to write them.
"""

from __future__ import annotations

from dataclasses import dataclass

# Coarse mutation kinds. The calling handler picks one; nothing infers it.
ACTIONS: tuple[str, ...] = ("CREATE", "UPDATE", "DELETE")


@dataclass(frozen=True)
class OperationLog:
    """One audit entry.

    user_id is None for system actions and for entries whose user has since
    been deleted. metadata is an opaque JSON string, or None.
    """

    method: str
    route: str
    action: str
    id: int | None = None
    user_id: int | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    metadata: str | None = None
    created_at: str | None = None
