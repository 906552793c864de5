# hm_core/billing/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from hm_core.billing.api.serializers import (
    InvoiceCreateSerializer,
    InvoiceListSerializer,
    InvoiceSerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
)
from hm_core.billing.models import Invoice, InvoiceStatus
from hm_core.billing.selectors import get_invoice, invoices_filtered, payments_for_invoice
from hm_core.billing.services import InvoiceService, PaymentService
from hm_core.common.api.exceptions import InvalidStatus
from hm_core.common.api.pagination import paginate
from hm_core.common.api.params import uuid_or_none
from hm_core.common.tenancy import require_tenant, tenant_scope


class InvoiceViewSet(viewsets.GenericViewSet):
    """
    Billing v1 invoices:
    - list (filter by patient/status)
    - retrieve (items + payments)
    - create (items, discount, tax) -> posts the ledger in the same unit of work
    """
    serializer_class = InvoiceSerializer
    queryset = Invoice.objects.none()

    @extend_schema(
        tags=["Billing"],
        responses={200: InvoiceListSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        ctx = require_tenant(request)

        patient_id = uuid_or_none(request.query_params.get("patient"), "patient")
        status_q = (request.query_params.get("status") or "").strip().upper() or None
        if status_q and status_q not in InvoiceStatus.values:
            raise InvalidStatus({"status": f"Allowed: {list(InvoiceStatus.values)}"})

        with tenant_scope(ctx):
            qs = invoices_filtered(tenant_id=ctx.tenant_id, patient_id=patient_id, status=status_q)
            return paginate(request, qs, InvoiceListSerializer)

    @extend_schema(tags=["Billing"], responses={200: InvoiceSerializer})
    def retrieve(self, request, pk=None):
        ctx = require_tenant(request)

        with tenant_scope(ctx):
            inv = get_invoice(tenant_id=ctx.tenant_id, invoice_id=uuid_or_none(pk, "id"))
            data = InvoiceSerializer(inv).data
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], request=InvoiceCreateSerializer, responses={201: InvoiceSerializer})
    def create(self, request):
        ctx = require_tenant(request)

        ser = InvoiceCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        inv = InvoiceService.create_invoice(ctx=ctx, **ser.validated_data)

        with tenant_scope(ctx):
            data = InvoiceSerializer(get_invoice(tenant_id=ctx.tenant_id, invoice_id=inv.id)).data
        return Response(data, status=status.HTTP_201_CREATED)


class InvoicePaymentsView(APIView):
    """
    /billing/invoices/<invoice_id>/payments/
    - GET list payments
    - POST record a payment (status re-derived from all payments)
    """

    @extend_schema(tags=["Billing"], responses={200: PaymentSerializer(many=True)})
    def get(self, request, invoice_id):
        ctx = require_tenant(request)
        inv_id = uuid_or_none(invoice_id, "invoice_id")

        with tenant_scope(ctx):
            get_invoice(tenant_id=ctx.tenant_id, invoice_id=inv_id)
            data = PaymentSerializer(payments_for_invoice(tenant_id=ctx.tenant_id, invoice_id=inv_id), many=True).data
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Billing"], request=PaymentCreateSerializer, responses={201: OpenApiTypes.OBJECT})
    def post(self, request, invoice_id):
        ctx = require_tenant(request)

        ser = PaymentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        pay = PaymentService.record_payment(ctx=ctx, invoice_id=invoice_id, **ser.validated_data)

        with tenant_scope(ctx):
            invoice_status = get_invoice(tenant_id=ctx.tenant_id, invoice_id=pay.invoice_id).status
        return Response(
            {"payment": PaymentSerializer(pay).data, "invoice_status": invoice_status},
            status=status.HTTP_201_CREATED,
        )
