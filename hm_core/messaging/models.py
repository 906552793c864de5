# hm_core/messaging/models.py
from __future__ import annotations

from django.db import models

from hm_core.billing.models import Invoice
from hm_core.common.models import ScopedModel
from hm_core.patients.models import Patient


class MessageChannel(models.TextChoices):
    WHATSAPP = "WHATSAPP", "WhatsApp"
    SMS = "SMS", "SMS"


class MessageStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    SENT = "SENT", "Sent"
    FAILED = "FAILED", "Failed"


class MessageLog(ScopedModel):
    """
    Delivery log for one outbound message.
    PENDING is committed before the provider is called; SENT/FAILED after.
    """
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="message_logs", null=True, blank=True)
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="message_logs", null=True, blank=True)

    channel = models.CharField(max_length=16, choices=MessageChannel.choices, default=MessageChannel.WHATSAPP)
    to = models.CharField(max_length=32, blank=True)
    provider = models.CharField(max_length=32, blank=True)

    status = models.CharField(max_length=16, choices=MessageStatus.choices, default=MessageStatus.PENDING, db_index=True)
    provider_id = models.CharField(max_length=128, blank=True)
    error = models.TextField(blank=True)
    body = models.TextField(blank=True)

    class Meta:
        db_table = "messaging_message_log"
        indexes = [
            models.Index(fields=["tenant_id", "invoice", "created_at"]),
            models.Index(fields=["tenant_id", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.channel} -> {self.to or '-'} ({self.status})"
