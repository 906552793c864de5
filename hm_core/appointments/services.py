# hm_core/appointments/services.py
from __future__ import annotations

import logging
from datetime import datetime, time, timezone as dt_timezone
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from hm_core.appointments.models import Appointment, AppointmentStatus
from hm_core.appointments.selectors import active_in_slot, get_appointment
from hm_core.audit.services import AuditService
from hm_core.common.api.exceptions import (
    AppointmentNotFound,
    DoctorNotFound,
    InvalidDate,
    InvalidPayload,
    InvalidStatus,
    SlotTaken,
)
from hm_core.common.api.params import uuid_or_none
from hm_core.common.tenancy import TenantContext, tenant_scope
from hm_core.doctors.selectors import get_doctor
from hm_core.patients.selectors import get_patient

logger = logging.getLogger(__name__)


def parse_scheduled_at(value) -> datetime:
    """
    ISO-8601 datetime (or bare date -> midnight). Naive values are read as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        raw = str(value or "").strip()
        dt = None
        if raw:
            try:
                dt = parse_datetime(raw)
                if dt is None:
                    d = parse_date(raw)
                    dt = datetime.combine(d, time.min) if d else None
            except ValueError:
                dt = None
        if dt is None:
            raise InvalidDate({"scheduled_at": "Invalid scheduled_at. Use ISO-8601."})

    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, dt_timezone.utc)
    return dt


class AppointmentService:
    @staticmethod
    def _slot_conflict(*, ctx: TenantContext, doctor_id: UUID, scheduled_at: datetime, exclude_id=None):
        return active_in_slot(
            tenant_id=ctx.tenant_id,
            doctor_id=doctor_id,
            scheduled_at=scheduled_at,
            exclude_id=exclude_id,
        )

    @staticmethod
    def book(
        *,
        ctx: TenantContext,
        doctor_id: UUID,
        patient_id: UUID,
        scheduled_at,
        reason: str = "",
    ) -> Appointment:
        """
        Books a slot or raises SlotTaken with the appointment already holding it.

        The conflict read is a fast path; the partial unique constraint is the
        actual guard when two bookings race for the same slot.
        """
        doctor_id = uuid_or_none(doctor_id, "doctor_id")
        patient_id = uuid_or_none(patient_id, "patient_id")
        if doctor_id is None or patient_id is None:
            raise InvalidPayload({"detail": "doctor_id and patient_id are required."})
        if scheduled_at is None or scheduled_at == "":
            raise InvalidPayload({"scheduled_at": "This field is required."})
        when = parse_scheduled_at(scheduled_at)

        with tenant_scope(ctx):
            patient = get_patient(tenant_id=ctx.tenant_id, patient_id=patient_id)
            doctor = get_doctor(tenant_id=ctx.tenant_id, doctor_id=doctor_id)
            if doctor is None:
                raise DoctorNotFound()

            conflict = AppointmentService._slot_conflict(ctx=ctx, doctor_id=doctor.id, scheduled_at=when)
            if conflict is not None:
                logger.warning("slot taken tenant=%s doctor=%s at=%s by=%s", ctx.tenant_id, doctor.id, when, conflict.id)
                raise SlotTaken(conflict)

            try:
                with transaction.atomic():
                    appt = Appointment.objects.create(
                        tenant_id=ctx.tenant_id,
                        patient=patient,
                        doctor=doctor,
                        scheduled_at=when,
                        status=AppointmentStatus.SCHEDULED,
                        reason=(reason or "").strip(),
                        created_by_user_id=ctx.actor_user_id,
                    )
            except IntegrityError:
                conflict = AppointmentService._slot_conflict(ctx=ctx, doctor_id=doctor.id, scheduled_at=when)
                if conflict is None:
                    raise
                logger.warning("slot taken (race) tenant=%s doctor=%s at=%s by=%s", ctx.tenant_id, doctor.id, when, conflict.id)
                raise SlotTaken(conflict)

            AuditService.log(
                ctx=ctx,
                event_code="appointment.booked",
                entity_type="Appointment",
                entity_id=appt.id,
                metadata={"doctor_id": str(doctor.id), "scheduled_at": when.isoformat()},
            )

        logger.info("appointment booked tenant=%s appointment=%s doctor=%s at=%s", ctx.tenant_id, appt.id, doctor.id, when)
        return appt

    @staticmethod
    def set_status(*, ctx: TenantContext, appointment_id: UUID, status: str) -> Appointment:
        status = (status or "").strip().lower()
        if status not in AppointmentStatus.values:
            raise InvalidStatus({"status": f"Allowed: {list(AppointmentStatus.values)}"})
        appointment_id = uuid_or_none(appointment_id, "appointment_id")

        with tenant_scope(ctx):
            appt = get_appointment(tenant_id=ctx.tenant_id, appointment_id=appointment_id, for_update=True)
            if appt is None:
                raise AppointmentNotFound()

            previous = appt.status
            reactivating = previous == AppointmentStatus.CANCELLED and status != AppointmentStatus.CANCELLED
            if reactivating:
                conflict = AppointmentService._slot_conflict(
                    ctx=ctx, doctor_id=appt.doctor_id, scheduled_at=appt.scheduled_at, exclude_id=appt.id
                )
                if conflict is not None:
                    raise SlotTaken(conflict)

            appt.status = status
            if status == AppointmentStatus.CANCELLED:
                appt.cancelled_at = timezone.now()

            try:
                with transaction.atomic():
                    appt.save(update_fields=["status", "cancelled_at", "updated_at"])
            except IntegrityError:
                conflict = AppointmentService._slot_conflict(
                    ctx=ctx, doctor_id=appt.doctor_id, scheduled_at=appt.scheduled_at, exclude_id=appt.id
                )
                if conflict is None:
                    raise
                raise SlotTaken(conflict)

            AuditService.log(
                ctx=ctx,
                event_code="appointment.status_changed",
                entity_type="Appointment",
                entity_id=appt.id,
                metadata={"from": previous, "to": status},
            )

        logger.info("appointment status tenant=%s appointment=%s %s->%s", ctx.tenant_id, appt.id, previous, status)
        return appt
