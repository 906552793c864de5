# hm_core/common/openapi.py
from __future__ import annotations

from drf_spectacular.openapi import AutoSchema
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter


class HMSAutoSchema(AutoSchema):
    """
    Adds the X-Tenant-Id header to every scoped endpoint.
    Skipped for spectacular's own views, JWT token views and the public invoice view.
    """

    TENANT_HEADER = OpenApiParameter(
        name="X-Tenant-Id",
        type=OpenApiTypes.UUID,
        location=OpenApiParameter.HEADER,
        required=True,
        description="Tenant scope UUID (required for scoped endpoints).",
    )

    def _is_unscoped_endpoint(self) -> bool:
        view = getattr(self, "view", None)
        if view is None:
            return False

        view_class_name = view.__class__.__name__
        if view_class_name in {"SpectacularAPIView", "SpectacularSwaggerView", "PublicInvoiceView"}:
            return True

        module = view.__class__.__module__ or ""
        if module.startswith("rest_framework_simplejwt."):
            return True

        path = getattr(self, "path", "") or ""
        return "/public/" in path

    def get_override_parameters(self):
        params = list(super().get_override_parameters() or [])

        if not self._is_unscoped_endpoint():
            if not any(p.name.lower() == "x-tenant-id" for p in params):
                params.append(self.TENANT_HEADER)

        return params
