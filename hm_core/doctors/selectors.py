from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from hm_core.doctors.models import Doctor


def list_doctors(*, tenant_id: UUID, limit: int = 100) -> QuerySet[Doctor]:
    return Doctor.objects.filter(tenant_id=tenant_id).order_by("first_name")[:limit]


def get_doctor(*, tenant_id: UUID, doctor_id: UUID) -> Doctor | None:
    return Doctor.objects.filter(tenant_id=tenant_id, id=doctor_id).first()
