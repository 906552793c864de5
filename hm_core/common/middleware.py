from __future__ import annotations

from uuid import UUID

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from hm_core.common.api.exceptions import build_error_envelope
from hm_core.common.tenancy import INVALID_TENANT_MSG, MISSING_TENANT_MSG, raw_tenant_from_request


class TenantScopeMiddleware(MiddlewareMixin):
    """
    Enforces tenant scope for API requests.

    Behavior:
      - Enforced for /api/v1/* and /api/* (alias).
      - Tenant comes from the X-Tenant-Id header, else session["tenant_id"].
      - Auth endpoints and docs/schema/admin are never scoped.
      - Unauthenticated requests pass through (DRF rejects them later).
      - Missing tenant -> 400 tenant_required; non-UUID -> 400 invalid_payload.
      - On success -> attaches request.tenant_id (reset on every request).
    """

    ENFORCED_PREFIXES = ("/api/v1/", "/api/")

    PUBLIC_PATH_PREFIXES = (
        "/admin/",
        "/api/docs/",
        "/api/schema/",
        "/public/",
    )

    AUTH_PATH_SUFFIXES = (
        "/auth/token/",
        "/auth/token/refresh/",
    )

    ALLOW_NO_SCOPE_EXACT_PATHS = (
        "/api/v1/",
        "/api/",
    )

    def _starts_with_any(self, path: str, prefixes: tuple[str, ...]) -> bool:
        return any(path.startswith(p) for p in prefixes)

    def _endswith_any(self, path: str, suffixes: tuple[str, ...]) -> bool:
        return any(path.endswith(s) for s in suffixes)

    def _json_error(self, request, *, status_code: int, code: str, message: str) -> JsonResponse:
        return JsonResponse(
            build_error_envelope(request=request, code=code, message=message, details=None),
            status=status_code,
        )

    def process_request(self, request):
        request.tenant_id = None

        path = getattr(request, "path", "") or ""

        if self._starts_with_any(path, self.PUBLIC_PATH_PREFIXES):
            return None

        if not self._starts_with_any(path, self.ENFORCED_PREFIXES):
            return None

        if path in self.ALLOW_NO_SCOPE_EXACT_PATHS:
            return None

        if self._endswith_any(path, self.AUTH_PATH_SUFFIXES):
            return None

        # Token auth is resolved later by DRF; only session users are known here.
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        raw = (raw_tenant_from_request(request) or "").strip()
        if not raw:
            return self._json_error(request, status_code=400, code="tenant_required", message=MISSING_TENANT_MSG)

        try:
            request.tenant_id = UUID(raw)
        except ValueError:
            return self._json_error(request, status_code=400, code="invalid_payload", message=INVALID_TENANT_MSG)

        return None
