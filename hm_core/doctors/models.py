# hm_core/doctors/models.py
from django.db import models

from hm_core.common.models import ScopedModel


class Doctor(ScopedModel):
    """
    Doctor directory entry. Read-only from the billing/scheduling core.
    """
    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128, blank=True)
    specialty = models.CharField(max_length=128, blank=True)
    phone = models.CharField(max_length=32, blank=True)

    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "doctors_doctor"
        indexes = [
            models.Index(fields=["tenant_id", "first_name"]),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"Dr. {self.full_name}"
