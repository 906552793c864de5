# hm_core/audit/services.py
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from hm_core.audit.models import AuditEvent
from hm_core.common.tenancy import TenantContext


class AuditService:
    """
    Central audit writer. Call from inside the caller's unit of work so the
    audit row commits (or rolls back) with the change it describes.
    """

    @staticmethod
    def log(
        *,
        ctx: TenantContext,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        return AuditEvent.objects.create(
            tenant_id=ctx.tenant_id,
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_user_id=ctx.actor_user_id,
            metadata=metadata or {},
        )
