# hm_core/messaging/links.py
from __future__ import annotations

from urllib.parse import urlencode
from uuid import UUID

from django.conf import settings
from django.core import signing
from django.urls import reverse

PUBLIC_INVOICE_SALT = "hm_core.messaging.public_invoice"


def sign_invoice_token(*, tenant_id: UUID, invoice_id: UUID) -> str:
    return signing.dumps({"t": str(tenant_id), "i": str(invoice_id)}, salt=PUBLIC_INVOICE_SALT)


def read_invoice_token(token: str, *, max_age: int | None = None) -> tuple[UUID, UUID]:
    """
    Returns (tenant_id, invoice_id). Raises signing.BadSignature
    (SignatureExpired included) for anything not issued by sign_invoice_token.
    """
    if max_age is None:
        max_age = settings.PUBLIC_INVOICE_LINK_MAX_AGE
    payload = signing.loads(token, salt=PUBLIC_INVOICE_SALT, max_age=max_age)
    try:
        return UUID(payload["t"]), UUID(payload["i"])
    except (KeyError, TypeError, ValueError):
        raise signing.BadSignature("Malformed invoice token payload.")


def public_invoice_url(*, tenant_id: UUID, invoice_id: UUID) -> str:
    token = sign_invoice_token(tenant_id=tenant_id, invoice_id=invoice_id)
    base = settings.PUBLIC_BASE_URL.rstrip("/")
    return f"{base}{reverse('public-invoice-view')}?{urlencode({'token': token})}"
