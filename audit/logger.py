"""
audit/logger.py -- Best-effort audit recording for mutating requests.

Handlers call AuditLogger.record() after their primary write has committed and
before they return. record() has its own error boundary: any failure writing
the entry is reported on the "cushiontrack.audit" logger and swallowed. The
business write is never rolled back and the HTTP response is unchanged.

The trail can therefore have gaps when the audit store is down. Availability
of the business operations does not depend on it.
"""

from __future__ import annotations

import logging
from typing import Any

from audit.store import OperationLogStore

logger = logging.getLogger("cushiontrack.audit")


class AuditLogger:
    def __init__(self, store: OperationLogStore) -> None:
        self.store = store

    def record(
        self,
        user_id: int | None,
        method: str,
        route: str,
        action: str,
        entity_type: str | None = None,
        entity_id: str | int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Append one entry. Never raises."""
        try:
            self.store.append(
                user_id=user_id,
                method=method,
                route=route,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                metadata=metadata,
            )
        except Exception:
            logger.exception(
                "Audit write failed: %s %s %s %s/%s by user %s",
                method,
                route,
                action,
                entity_type,
                entity_id,
                user_id,
            )

    def forget_user(self, user_id: int) -> None:
        """Anonymize every entry attributed to a deleted user. Never raises.

        On failure the entries keep the stale id; the deleted account can no
        longer act, so the trail stays readable.
        """
        try:
            detached = self.store.detach_user(user_id)
        except Exception:
            logger.exception("Audit detach failed for user %s", user_id)
            return
        logger.info("Detached %d audit entries from deleted user %s", detached, user_id)
