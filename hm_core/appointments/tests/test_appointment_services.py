# hm_core/appointments/tests/test_appointment_services.py
from datetime import datetime, timezone as dt_timezone

import pytest

from hm_core.appointments.models import Appointment, AppointmentStatus
from hm_core.appointments import services as appointment_services
from hm_core.appointments.selectors import appointments_for_day
from hm_core.appointments.services import AppointmentService, parse_scheduled_at
from hm_core.audit.models import AuditEvent
from hm_core.common.api.exceptions import (
    AppointmentNotFound,
    DoctorNotFound,
    InvalidDate,
    InvalidStatus,
    PatientNotFound,
    SlotTaken,
)
from hm_core.doctors.models import Doctor

SLOT = "2024-01-01T10:00:00Z"


def test_parse_scheduled_at_reads_naive_as_utc():
    assert parse_scheduled_at("2024-01-01T10:00:00") == datetime(2024, 1, 1, 10, 0, tzinfo=dt_timezone.utc)
    assert parse_scheduled_at("2024-01-01") == datetime(2024, 1, 1, 0, 0, tzinfo=dt_timezone.utc)


@pytest.mark.parametrize("value", ["", None, "tomorrow", "2024-13-45T99:00:00"])
def test_parse_scheduled_at_rejects_garbage(value):
    with pytest.raises(InvalidDate):
        parse_scheduled_at(value)


@pytest.mark.django_db
def test_book_then_same_slot_conflicts(ctx, patient, doctor):
    appt = AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)
    assert appt.status == AppointmentStatus.SCHEDULED

    with pytest.raises(SlotTaken) as exc:
        AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)
    assert exc.value.conflict.id == appt.id
    assert Appointment.objects.count() == 1


@pytest.mark.django_db
def test_other_doctor_or_other_minute_is_free(ctx, tenant, patient, doctor):
    other = Doctor.objects.create(tenant_id=tenant.id, first_name="Meera")
    AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)
    AppointmentService.book(ctx=ctx, doctor_id=other.id, patient_id=patient.id, scheduled_at=SLOT)
    AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at="2024-01-01T10:15:00Z")
    assert Appointment.objects.count() == 3


@pytest.mark.django_db
def test_cancelled_slot_can_be_rebooked(ctx, patient, doctor):
    first = AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)
    cancelled = AppointmentService.set_status(ctx=ctx, appointment_id=first.id, status="cancelled")
    assert cancelled.cancelled_at is not None

    second = AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)
    assert second.id != first.id


@pytest.mark.django_db
def test_reactivating_cancelled_into_taken_slot_conflicts(ctx, patient, doctor):
    first = AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)
    AppointmentService.set_status(ctx=ctx, appointment_id=first.id, status="cancelled")
    second = AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)

    with pytest.raises(SlotTaken) as exc:
        AppointmentService.set_status(ctx=ctx, appointment_id=first.id, status="scheduled")
    assert exc.value.conflict.id == second.id

    first.refresh_from_db()
    assert first.status == AppointmentStatus.CANCELLED


@pytest.mark.django_db
def test_non_cancel_transition_keeps_cancelled_at(ctx, patient, doctor):
    appt = AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)
    appt = AppointmentService.set_status(ctx=ctx, appointment_id=appt.id, status="cancelled")
    stamped = appt.cancelled_at

    appt = AppointmentService.set_status(ctx=ctx, appointment_id=appt.id, status="confirmed")
    assert appt.status == AppointmentStatus.CONFIRMED
    assert appt.cancelled_at == stamped

    appt = AppointmentService.set_status(ctx=ctx, appointment_id=appt.id, status="completed")
    assert appt.cancelled_at == stamped

    assert AuditEvent.objects.filter(entity_id=appt.id, event_code="appointment.status_changed").count() == 3


@pytest.mark.django_db
def test_set_status_errors(ctx, other_ctx, patient, doctor):
    appt = AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)

    with pytest.raises(InvalidStatus):
        AppointmentService.set_status(ctx=ctx, appointment_id=appt.id, status="done")

    with pytest.raises(AppointmentNotFound):
        AppointmentService.set_status(ctx=other_ctx, appointment_id=appt.id, status="confirmed")


@pytest.mark.django_db
def test_book_requires_patient_and_doctor_in_tenant(ctx, other_ctx, other_tenant, patient, doctor):
    with pytest.raises(PatientNotFound):
        AppointmentService.book(ctx=other_ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)

    foreign_doctor = Doctor.objects.create(tenant_id=other_tenant.id, first_name="Elsewhere")
    with pytest.raises(DoctorNotFound):
        AppointmentService.book(ctx=ctx, doctor_id=foreign_doctor.id, patient_id=patient.id, scheduled_at=SLOT)

    assert Appointment.objects.count() == 0


@pytest.mark.django_db
def test_book_invalid_date(ctx, patient, doctor):
    with pytest.raises(InvalidDate):
        AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at="not a date")


@pytest.mark.django_db
def test_partial_unique_constraint_blocks_direct_duplicate(tenant, patient, doctor):
    from django.db import IntegrityError, transaction

    when = datetime(2024, 1, 1, 10, tzinfo=dt_timezone.utc)
    Appointment.objects.create(tenant_id=tenant.id, patient=patient, doctor=doctor, scheduled_at=when)
    Appointment.objects.create(
        tenant_id=tenant.id, patient=patient, doctor=doctor, scheduled_at=when, status=AppointmentStatus.CANCELLED
    )
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Appointment.objects.create(tenant_id=tenant.id, patient=patient, doctor=doctor, scheduled_at=when)


@pytest.mark.django_db
def test_appointments_for_day_is_utc_bounded(ctx, patient, doctor):
    AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at="2024-01-01T00:00:00Z")
    AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at="2024-01-01T23:59:00Z")
    AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at="2024-01-02T00:00:00Z")

    qs = appointments_for_day(tenant_id=ctx.tenant_id, day=datetime(2024, 1, 1).date())
    assert qs.count() == 2


@pytest.mark.django_db
def test_losing_booking_race_reports_winner(ctx, patient, doctor, monkeypatch):
    winner = AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)

    # The first conflict read runs before the winner commits and sees nothing.
    real_active_in_slot = appointment_services.active_in_slot
    calls = []

    def stale_then_real(**kwargs):
        calls.append(kwargs)
        return None if len(calls) == 1 else real_active_in_slot(**kwargs)

    monkeypatch.setattr("hm_core.appointments.services.active_in_slot", stale_then_real)

    with pytest.raises(SlotTaken) as exc:
        AppointmentService.book(ctx=ctx, doctor_id=doctor.id, patient_id=patient.id, scheduled_at=SLOT)

    assert exc.value.conflict.id == winner.id
    assert len(calls) == 2
    assert Appointment.objects.count() == 1
    assert AuditEvent.objects.filter(event_code="appointment.booked").count() == 1
