# hm_core/patients/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet

from hm_core.common.api.exceptions import PatientNotFound
from hm_core.patients.models import Patient


def patients_qs(*, tenant_id: UUID) -> QuerySet[Patient]:
    return Patient.objects.filter(tenant_id=tenant_id)


def get_patient(*, tenant_id: UUID, patient_id: UUID) -> Patient:
    patient = patients_qs(tenant_id=tenant_id).filter(id=patient_id).first()
    if patient is None:
        raise PatientNotFound()
    return patient


def find_by_natural_key(*, tenant_id: UUID, uhid: str | None, phone: str | None) -> Patient | None:
    """
    uhid wins over phone when both are supplied.
    """
    qs = patients_qs(tenant_id=tenant_id)
    if uhid:
        hit = qs.filter(uhid=uhid).first()
        if hit is not None:
            return hit
    if phone:
        return qs.filter(phone=phone).first()
    return None


def search_patients(
    *,
    tenant_id: UUID,
    q: str | None = None,
    limit: int = 50,
) -> QuerySet[Patient]:
    qs = patients_qs(tenant_id=tenant_id)

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(first_name__icontains=qv)
            | Q(last_name__icontains=qv)
            | Q(uhid__icontains=qv)
            | Q(phone__icontains=qv)
            | Q(email__icontains=qv)
        )

    return qs.order_by("-created_at")[:limit]
