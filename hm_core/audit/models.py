# hm_core/audit/models.py
from django.db import models

from hm_core.common.models import AppendOnlyModel


class AuditEvent(AppendOnlyModel):
    """
    Immutable audit record: who did what to which entity, inside one tenant.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "appointment.status_changed"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "Appointment"
    entity_id = models.UUIDField(db_index=True)

    actor_user_id = models.IntegerField(null=True, blank=True)

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["tenant_id", "occurred_at"]),
            models.Index(fields=["entity_type", "entity_id"]),
        ]
