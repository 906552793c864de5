# hm_core/messaging/views.py
from __future__ import annotations

from django.core import signing
from django.http import Http404, HttpResponseForbidden
from django.shortcuts import render
from django.views import View

from hm_core.billing.selectors import get_invoice
from hm_core.common.api.exceptions import InvoiceNotFound
from hm_core.common.tenancy import TenantContext, tenant_scope
from hm_core.messaging.links import read_invoice_token
from hm_core.tenants.models import Tenant


class PublicInvoiceView(View):
    """
    GET /public/invoices/view/?token=...
    Unauthenticated; the signed token carries the tenant and invoice.
    """

    def get(self, request):
        try:
            tenant_id, invoice_id = read_invoice_token(request.GET.get("token", ""))
        except signing.BadSignature:
            return HttpResponseForbidden("Invalid or expired link")

        try:
            with tenant_scope(TenantContext(tenant_id=tenant_id)):
                invoice = get_invoice(tenant_id=tenant_id, invoice_id=invoice_id)
                context = {
                    "invoice": invoice,
                    "patient": invoice.patient,
                    "items": list(invoice.items.all()),
                    "tenant_name": Tenant.objects.filter(id=tenant_id).values_list("name", flat=True).first(),
                }
        except InvoiceNotFound:
            raise Http404("Invoice not found")

        return render(request, "messaging/public_invoice.html", context)
