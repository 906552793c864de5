# hm_core/tests/helpers.py
from decimal import Decimal


def scoped(tenant):
    return {"HTTP_X_TENANT_ID": str(tenant.id)}


def d(value) -> Decimal:
    return Decimal(str(value))
