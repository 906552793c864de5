# hm_core/appointments/selectors.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from uuid import UUID

from django.db.models import QuerySet
from django.utils import timezone

from hm_core.appointments.models import Appointment, AppointmentStatus


def appointments_qs(*, tenant_id: UUID) -> QuerySet[Appointment]:
    return Appointment.objects.filter(tenant_id=tenant_id).select_related("patient", "doctor")


def get_appointment(*, tenant_id: UUID, appointment_id: UUID, for_update: bool = False) -> Appointment | None:
    qs = Appointment.objects.filter(tenant_id=tenant_id)
    if for_update:
        qs = qs.select_for_update()
    return qs.filter(id=appointment_id).first()


def active_in_slot(
    *,
    tenant_id: UUID,
    doctor_id: UUID,
    scheduled_at: datetime,
    exclude_id: UUID | None = None,
) -> Appointment | None:
    qs = (
        Appointment.objects.filter(tenant_id=tenant_id, doctor_id=doctor_id, scheduled_at=scheduled_at)
        .exclude(status=AppointmentStatus.CANCELLED)
    )
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    return qs.first()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """
    [start, end) of a UTC calendar day.
    """
    start = datetime.combine(day, time.min, tzinfo=dt_timezone.utc)
    return start, start + timedelta(days=1)


def appointments_for_day(*, tenant_id: UUID, day: date | None = None) -> QuerySet[Appointment]:
    day = day or timezone.now().astimezone(dt_timezone.utc).date()
    start, end = day_bounds(day)
    return (
        appointments_qs(tenant_id=tenant_id)
        .filter(scheduled_at__gte=start, scheduled_at__lt=end)
        .order_by("scheduled_at")
    )
