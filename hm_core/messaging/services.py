# hm_core/messaging/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from django.template.loader import render_to_string
from django.utils import timezone

from hm_core.billing.selectors import get_invoice
from hm_core.common.api.exceptions import InvalidPayload
from hm_core.common.api.params import uuid_or_none
from hm_core.common.tenancy import TenantContext, tenant_scope
from hm_core.messaging.dispatchers import (
    DispatchError,
    MessageDispatcher,
    MessageSendRequest,
    get_dispatcher,
)
from hm_core.messaging.links import public_invoice_url
from hm_core.messaging.models import MessageChannel, MessageLog, MessageStatus

logger = logging.getLogger(__name__)

MISSING_PHONE = "missing_patient_phone"


@dataclass(frozen=True)
class SendResult:
    log: MessageLog
    link: str

    @property
    def ok(self) -> bool:
        return self.log.status == MessageStatus.SENT


class InvoiceNotificationService:
    @staticmethod
    def _finish(*, ctx: TenantContext, log: MessageLog, **fields) -> MessageLog:
        with tenant_scope(ctx):
            MessageLog.objects.filter(tenant_id=ctx.tenant_id, id=log.id).update(updated_at=timezone.now(), **fields)
            log.refresh_from_db()
        return log

    @staticmethod
    def send_invoice(
        *,
        ctx: TenantContext,
        invoice_id: UUID,
        channel: str = MessageChannel.WHATSAPP,
        dispatcher: MessageDispatcher | None = None,
    ) -> SendResult:
        """
        Hands an invoice link to the configured provider and records the outcome.

        The PENDING log row commits before the provider is called, and the
        provider call runs outside any transaction. A patient without a phone
        leaves a committed FAILED row and raises InvalidPayload.
        """
        channel = (channel or MessageChannel.WHATSAPP).strip().upper()
        if channel not in MessageChannel.values:
            raise InvalidPayload({"channel": f"Allowed: {list(MessageChannel.values)}"})
        invoice_id = uuid_or_none(invoice_id, "invoice_id")
        dispatcher = dispatcher or get_dispatcher()

        with tenant_scope(ctx):
            invoice = get_invoice(tenant_id=ctx.tenant_id, invoice_id=invoice_id)
            patient = invoice.patient
            phone = (patient.phone or "").strip()

            if not phone:
                MessageLog.objects.create(
                    tenant_id=ctx.tenant_id,
                    patient=patient,
                    invoice=invoice,
                    channel=channel,
                    to="",
                    provider=dispatcher.provider,
                    status=MessageStatus.FAILED,
                    error=MISSING_PHONE,
                )
                link = ""
                log = None
            else:
                link = public_invoice_url(tenant_id=ctx.tenant_id, invoice_id=invoice.id)
                body = render_to_string(
                    "messaging/invoice_message.txt",
                    {"patient": patient, "invoice": invoice, "link": link},
                ).strip()
                log = MessageLog.objects.create(
                    tenant_id=ctx.tenant_id,
                    patient=patient,
                    invoice=invoice,
                    channel=channel,
                    to=phone,
                    provider=dispatcher.provider,
                    status=MessageStatus.PENDING,
                    body=body,
                )

        if log is None:
            logger.warning("invoice message skipped tenant=%s invoice=%s: %s", ctx.tenant_id, invoice.id, MISSING_PHONE)
            raise InvalidPayload({"patient": MISSING_PHONE})

        request = MessageSendRequest(
            tenant_id=ctx.tenant_id,
            patient_id=patient.id,
            invoice_id=invoice.id,
            channel=channel,
            to=phone,
            rendered_body=log.body,
        )

        try:
            provider_id = dispatcher.send(request)
        except DispatchError as exc:
            logger.warning("invoice message failed tenant=%s invoice=%s log=%s: %s", ctx.tenant_id, invoice.id, log.id, exc.code)
            log = InvoiceNotificationService._finish(ctx=ctx, log=log, status=MessageStatus.FAILED, error=exc.message)
            return SendResult(log=log, link=link)
        except Exception as exc:
            # Not a DispatchError: close the row as FAILED and re-raise.
            logger.warning("invoice message crashed tenant=%s invoice=%s log=%s: %r", ctx.tenant_id, invoice.id, log.id, exc)
            InvoiceNotificationService._finish(
                ctx=ctx, log=log, status=MessageStatus.FAILED, error=str(exc) or exc.__class__.__name__
            )
            raise

        log = InvoiceNotificationService._finish(ctx=ctx, log=log, status=MessageStatus.SENT, provider_id=provider_id or "")
        logger.info("invoice message sent tenant=%s invoice=%s provider_id=%s", ctx.tenant_id, invoice.id, provider_id)
        return SendResult(log=log, link=link)
