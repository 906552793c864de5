# hm_core/catalog/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models

from hm_core.common.models import ScopedModel


class Service(ScopedModel):
    """
    Billable catalog item. One record per tenant+code.
    Invoice items that reference a service default their description/rate from here.
    """
    code = models.SlugField(max_length=64)
    name = models.CharField(max_length=255)

    rate = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "catalog_service"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "code"],
                name="uq_catalog_service_tenant_code",
            )
        ]
        indexes = [
            models.Index(fields=["tenant_id", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"
