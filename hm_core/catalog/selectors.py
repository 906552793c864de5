from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from hm_core.catalog.models import Service


def services_qs(*, tenant_id: UUID) -> QuerySet[Service]:
    return Service.objects.filter(tenant_id=tenant_id, is_active=True)


def get_service(*, tenant_id: UUID, service_id: UUID) -> Service | None:
    return services_qs(tenant_id=tenant_id).filter(id=service_id).first()


def services_by_id(*, tenant_id: UUID, service_ids) -> dict[UUID, Service]:
    ids = {sid for sid in service_ids if sid}
    if not ids:
        return {}
    return {s.id: s for s in services_qs(tenant_id=tenant_id).filter(id__in=ids)}
