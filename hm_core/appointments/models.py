# hm_core/appointments/models.py
from __future__ import annotations

from django.db import models

from hm_core.common.models import ScopedModel
from hm_core.doctors.models import Doctor
from hm_core.patients.models import Patient


class AppointmentStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"
    COMPLETED = "completed", "Completed"
    NO_SHOW = "no_show", "No Show"


class Appointment(ScopedModel):
    """
    One doctor, one exact timestamp: at most one non-cancelled appointment
    per (tenant, doctor, scheduled_at). Enforced by the partial unique constraint.
    """
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="appointments")
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name="appointments")

    scheduled_at = models.DateTimeField(db_index=True)
    status = models.CharField(
        max_length=16,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED,
        db_index=True,
    )
    reason = models.TextField(blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_by_user_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "appointments_appointment"
        ordering = ["scheduled_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "doctor", "scheduled_at"],
                condition=~models.Q(status=AppointmentStatus.CANCELLED),
                name="uq_appt_doctor_slot_active",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "scheduled_at"]),
            models.Index(fields=["tenant_id", "doctor", "scheduled_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.doctor_id} @ {self.scheduled_at:%Y-%m-%d %H:%M} ({self.status})"
