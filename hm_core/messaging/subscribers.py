# hm_core/messaging/subscribers.py
from __future__ import annotations

import logging
import threading
from uuid import UUID

from django.conf import settings
from django.db import connection

from hm_core.common.api.exceptions import InvalidPayload
from hm_core.common.events import subscribe
from hm_core.common.tenancy import TenantContext
from hm_core.messaging.services import InvoiceNotificationService

logger = logging.getLogger(__name__)


def _send(payload) -> None:
    ctx = TenantContext(tenant_id=UUID(payload["tenant_id"]), actor_user_id=payload.get("actor_user_id"))
    try:
        InvoiceNotificationService.send_invoice(ctx=ctx, invoice_id=payload["invoice_id"])
    except InvalidPayload as exc:
        # Already recorded as a FAILED MessageLog row.
        logger.info("auto-send skipped invoice=%s: %s", payload["invoice_id"], exc.detail)
    except Exception:
        # The invoice is committed; delivery problems stay in the log.
        logger.exception("auto-send failed invoice=%s", payload["invoice_id"])


def _send_in_background(payload) -> None:
    try:
        _send(payload)
    finally:
        connection.close()


@subscribe("billing.invoice.created")
def send_invoice_on_create(payload):
    """
    Runs after the invoice transaction committed. Off unless MESSAGING_AUTO_SEND_INVOICE.
    """
    if not getattr(settings, "MESSAGING_AUTO_SEND_INVOICE", False):
        return

    if getattr(settings, "MESSAGING_AUTO_SEND_IN_BACKGROUND", True):
        threading.Thread(
            target=_send_in_background,
            args=(payload,),
            name=f"auto-send-{payload['invoice_id']}",
            daemon=True,
        ).start()
        return

    _send(payload)
