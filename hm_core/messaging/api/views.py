# hm_core/messaging/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from hm_core.common.tenancy import require_tenant
from hm_core.messaging.api.serializers import InvoiceSendSerializer, MessageLogSerializer
from hm_core.messaging.services import InvoiceNotificationService


class InvoiceSendView(APIView):
    """
    /billing/invoices/<invoice_id>/send/
    Provider failures are not HTTP errors: the outcome is in `ok` and `message.status`.
    """

    @extend_schema(tags=["Messaging"], request=InvoiceSendSerializer, responses={200: OpenApiTypes.OBJECT})
    def post(self, request, invoice_id):
        ctx = require_tenant(request)

        ser = InvoiceSendSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = InvoiceNotificationService.send_invoice(ctx=ctx, invoice_id=invoice_id, **ser.validated_data)

        return Response(
            {"ok": result.ok, "link": result.link, "message": MessageLogSerializer(result.log).data},
            status=status.HTTP_200_OK,
        )
