# hm_core/catalog/services.py
from __future__ import annotations

from hm_core.billing.money import to_money
from hm_core.catalog.models import Service
from hm_core.common.api.exceptions import InvalidPayload
from hm_core.common.tenancy import TenantContext, tenant_scope


class CatalogService:
    @staticmethod
    def upsert(
        *,
        ctx: TenantContext,
        code: str,
        name: str,
        rate,
        is_active: bool = True,
    ) -> Service:
        code = (code or "").strip()
        if not code:
            raise InvalidPayload({"code": "This field is required."})

        rate = to_money(rate, "rate")

        with tenant_scope(ctx):
            obj, _ = Service.objects.update_or_create(
                tenant_id=ctx.tenant_id,
                code=code,
                defaults={
                    "name": name,
                    "rate": rate,
                    "is_active": is_active,
                },
            )
        return obj
