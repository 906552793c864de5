# hm_core/patients/models.py
from django.db import models

from hm_core.common.models import ScopedModel


class Gender(models.TextChoices):
    MALE = "male", "Male"
    FEMALE = "female", "Female"
    OTHER = "other", "Other"
    UNSPECIFIED = "unspecified", "Unspecified"


class Patient(ScopedModel):
    """
    Patient record scoped to a tenant.

    Natural keys (uhid, phone) are unique per tenant when present.
    Blank values are stored as NULL so they never collide.
    """
    uhid = models.CharField(max_length=64, null=True, blank=True)

    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128, blank=True)
    phone = models.CharField(max_length=32, null=True, blank=True)
    email = models.EmailField(blank=True)
    gender = models.CharField(max_length=16, choices=Gender.choices, default=Gender.UNSPECIFIED)
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.TextField(blank=True)
    meta = models.JSONField(default=dict, blank=True)

    created_by_user_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "patients_patient"
        constraints = [
            models.UniqueConstraint(fields=["tenant_id", "uhid"], name="uq_patient_tenant_uhid"),
            models.UniqueConstraint(fields=["tenant_id", "phone"], name="uq_patient_tenant_phone"),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "first_name"]),
            models.Index(fields=["tenant_id", "created_at"]),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"{self.full_name} ({self.uhid or '-'})"
