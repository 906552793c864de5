# hm_core/patients/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from django.db import IntegrityError, transaction

from hm_core.audit.services import AuditService
from hm_core.common.api.exceptions import DuplicateNaturalKey, InvalidPayload
from hm_core.common.tenancy import TenantContext, tenant_scope
from hm_core.patients.models import Patient
from hm_core.patients.selectors import find_by_natural_key, get_patient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatientResult:
    """
    Tagged find-or-create outcome: created=False means an existing record
    already owned the supplied uhid/phone and was returned unchanged.
    """
    patient: Patient
    created: bool


def _norm_uhid(value) -> str | None:
    v = (value or "").strip()
    return v or None


def _norm_phone(value) -> str | None:
    v = "".join(str(value or "").split())
    return v or None


class PatientService:
    UPDATABLE_FIELDS = {
        "uhid",
        "first_name",
        "last_name",
        "phone",
        "email",
        "gender",
        "date_of_birth",
        "address",
        "meta",
    }

    @staticmethod
    def find_or_create(
        *,
        ctx: TenantContext,
        first_name: str,
        last_name: str = "",
        uhid: str | None = None,
        phone: str | None = None,
        email: str = "",
        gender: str = "",
        date_of_birth=None,
        address: str = "",
        meta: dict | None = None,
    ) -> PatientResult:
        first_name = (first_name or "").strip()
        if not first_name:
            raise InvalidPayload({"first_name": "This field is required."})

        uhid = _norm_uhid(uhid)
        phone = _norm_phone(phone)

        with tenant_scope(ctx):
            existing = find_by_natural_key(tenant_id=ctx.tenant_id, uhid=uhid, phone=phone)
            if existing is not None:
                return PatientResult(patient=existing, created=False)

            try:
                with transaction.atomic():
                    patient = Patient.objects.create(
                        tenant_id=ctx.tenant_id,
                        uhid=uhid,
                        first_name=first_name,
                        last_name=(last_name or "").strip(),
                        phone=phone,
                        email=email or "",
                        gender=gender or "unspecified",
                        date_of_birth=date_of_birth,
                        address=address or "",
                        meta=meta or {},
                        created_by_user_id=ctx.actor_user_id,
                    )
            except IntegrityError:
                # Lost a race with a concurrent create of the same natural key.
                existing = find_by_natural_key(tenant_id=ctx.tenant_id, uhid=uhid, phone=phone)
                if existing is None:
                    raise
                return PatientResult(patient=existing, created=False)

            AuditService.log(
                ctx=ctx,
                event_code="patient.created",
                entity_type="Patient",
                entity_id=patient.id,
                metadata={"uhid": uhid},
            )

        logger.info("patient created tenant=%s patient=%s", ctx.tenant_id, patient.id)
        return PatientResult(patient=patient, created=True)

    @staticmethod
    def _assert_key_free(*, ctx: TenantContext, patient: Patient, field: str, value) -> None:
        if value is None:
            return
        other = (
            Patient.objects.filter(tenant_id=ctx.tenant_id, **{field: value})
            .exclude(id=patient.id)
            .first()
        )
        if other is not None:
            raise DuplicateNaturalKey(existing=other, field=field, detail=f"{field} already belongs to another patient.")

    @staticmethod
    def update_patient(
        *,
        ctx: TenantContext,
        patient_id: UUID,
        data: dict,
    ) -> Patient:
        updates = {k: v for k, v in (data or {}).items() if k in PatientService.UPDATABLE_FIELDS}
        if "uhid" in updates:
            updates["uhid"] = _norm_uhid(updates["uhid"])
        if "phone" in updates:
            updates["phone"] = _norm_phone(updates["phone"])
        if "first_name" in updates and not (updates["first_name"] or "").strip():
            raise InvalidPayload({"first_name": "This field may not be blank."})

        with tenant_scope(ctx):
            patient = get_patient(tenant_id=ctx.tenant_id, patient_id=patient_id)

            for field in ("uhid", "phone"):
                if field in updates:
                    PatientService._assert_key_free(ctx=ctx, patient=patient, field=field, value=updates[field])

            for k, v in updates.items():
                setattr(patient, k, v)

            try:
                with transaction.atomic():
                    patient.save()
            except IntegrityError:
                for field in ("uhid", "phone"):
                    if field in updates:
                        PatientService._assert_key_free(ctx=ctx, patient=patient, field=field, value=updates[field])
                raise

            AuditService.log(
                ctx=ctx,
                event_code="patient.updated",
                entity_type="Patient",
                entity_id=patient.id,
                metadata={"updated_fields": sorted(updates.keys())},
            )
        return patient
