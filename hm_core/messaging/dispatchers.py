# hm_core/messaging/dispatchers.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from uuid import UUID

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageSendRequest:
    tenant_id: UUID
    patient_id: UUID | None
    invoice_id: UUID | None
    channel: str
    to: str
    rendered_body: str


class DispatchError(Exception):
    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class MessageDispatcher:
    """
    Provider boundary. send() returns the provider's message id or raises DispatchError.
    Never called inside a database transaction.
    """
    provider = ""

    def send(self, request: MessageSendRequest) -> str:
        raise NotImplementedError


class NotConfiguredDispatcher(MessageDispatcher):
    provider = "NONE"

    def send(self, request: MessageSendRequest) -> str:
        raise DispatchError("provider_not_configured")


class ConsoleDispatcher(MessageDispatcher):
    """
    Local development: writes the message to the log instead of a provider.
    """
    provider = "CONSOLE"

    def send(self, request: MessageSendRequest) -> str:
        provider_id = f"console-{uuid.uuid4().hex[:12]}"
        logger.info("[%s] %s -> %s: %s", provider_id, request.channel, request.to, request.rendered_body)
        return provider_id


def get_dispatcher() -> MessageDispatcher:
    return import_string(settings.MESSAGING_DISPATCHER)()
