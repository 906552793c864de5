# hm_core/tenants/services.py
from __future__ import annotations

from typing import Optional

from django.db import transaction

from hm_core.common.api.exceptions import InvalidPayload
from hm_core.tenants.models import Tenant, TenantStatus


class TenantService:
    @staticmethod
    @transaction.atomic
    def create(*, name: str, code: str, metadata: Optional[dict] = None) -> Tenant:
        code = (code or "").strip()
        name = (name or "").strip()

        if not code:
            raise InvalidPayload({"code": "This field is required."})
        if not name:
            raise InvalidPayload({"name": "This field is required."})

        return Tenant.objects.create(
            name=name,
            code=code,
            status=TenantStatus.ACTIVE,
            metadata=metadata or {},
        )

    @staticmethod
    def ensure(*, name: str, code: str) -> Tenant:
        """
        Idempotent by code.
        """
        existing = Tenant.objects.filter(code=(code or "").strip()).first()
        if existing is not None:
            return existing
        return TenantService.create(name=name, code=code)
