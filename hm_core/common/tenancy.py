# hm_core/common/tenancy.py
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator
from uuid import UUID

from django.db import DatabaseError, connection, transaction

from hm_core.common.api.exceptions import InvalidPayload, PersistenceFailure, TenantRequired

HDR_TENANT = "X-Tenant-Id"
SESSION_TENANT_KEY = "tenant_id"

MISSING_TENANT_MSG = "Missing tenant scope. Provide X-Tenant-Id."
INVALID_TENANT_MSG = "Invalid tenant scope. X-Tenant-Id must be a UUID."


@dataclass(frozen=True)
class TenantContext:
    """
    Explicit tenant scope for one unit of work.
    Passed into every service call; never stored globally.
    """
    tenant_id: UUID
    actor_user_id: int | None = None

    @classmethod
    def from_raw(cls, raw, *, actor_user_id: int | None = None) -> "TenantContext":
        value = str(raw).strip() if raw is not None else ""
        if not value:
            raise TenantRequired(MISSING_TENANT_MSG)
        try:
            tenant_id = UUID(value)
        except ValueError:
            raise InvalidPayload({"tenant_id": INVALID_TENANT_MSG})
        return cls(tenant_id=tenant_id, actor_user_id=actor_user_id)


def _apply_to_connection(ctx: TenantContext) -> None:
    # Transaction-local (is_local=true): the setting ends with the transaction,
    # so it can never bleed into the next unit of work on a pooled connection.
    if connection.vendor != "postgresql":
        return
    with connection.cursor() as cur:
        cur.execute("SELECT set_config('app.tenant_id', %s, true)", [str(ctx.tenant_id)])


@contextmanager
def tenant_scope(ctx: TenantContext | None) -> Iterator[TenantContext]:
    """
    Opens one tenant-bound unit of work (a single DB transaction).

    - ctx is required (TenantRequired otherwise)
    - the tenant is applied to the connection before anything else runs
    - store errors surface as PersistenceFailure; nothing is retried here
    """
    if ctx is None or not getattr(ctx, "tenant_id", None):
        raise TenantRequired(MISSING_TENANT_MSG)

    try:
        with transaction.atomic():
            _apply_to_connection(ctx)
            yield ctx
    except DatabaseError as exc:
        raise PersistenceFailure() from exc


def _actor_id(request) -> int | None:
    user = getattr(request, "user", None)
    if user is not None and getattr(user, "is_authenticated", False):
        return user.id
    return None


def raw_tenant_from_request(request) -> str | None:
    """
    Header first, then session. request.headers is case-insensitive;
    fall back to META for RequestFactory requests.
    """
    raw = None
    try:
        raw = request.headers.get(HDR_TENANT)
    except AttributeError:
        pass
    if not raw:
        raw = request.META.get("HTTP_X_TENANT_ID")
    if not raw:
        session = getattr(request, "session", None)
        if session is not None:
            raw = session.get(SESSION_TENANT_KEY)
    return raw


def require_tenant(request) -> TenantContext:
    """
    Builds the TenantContext for a view.
    Prefers the middleware-attached request.tenant_id.
    """
    attached = getattr(request, "tenant_id", None)
    if attached:
        return TenantContext(tenant_id=UUID(str(attached)), actor_user_id=_actor_id(request))

    return TenantContext.from_raw(raw_tenant_from_request(request), actor_user_id=_actor_id(request))
