# hm_core/billing/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hm_core.billing.models import Invoice, InvoiceItem, Payment, PaymentMode


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = [
            "id",
            "position",
            "service",
            "description",
            "quantity",
            "rate",
            "amount",
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "tenant_id",
            "invoice",
            "amount",
            "mode",
            "reference",
            "received_at",
            "recorded_by_user_id",
            "created_at",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "tenant_id",
            "patient",
            "invoice_number",
            "status",
            "currency",
            "subtotal",
            "discount",
            "tax",
            "total",
            "notes",
            "created_by_user_id",
            "items",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InvoiceListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = [
            "id",
            "patient",
            "invoice_number",
            "status",
            "total",
            "created_at",
        ]
        read_only_fields = fields


class InvoiceCreateSerializer(serializers.Serializer):
    # Checked by InvoiceService: a missing patient_id is invalid_payload.
    patient_id = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None, help_text="UUID")
    items = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    discount = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    tax = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentCreateSerializer(serializers.Serializer):
    amount = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    mode = serializers.CharField(required=False, allow_blank=True, default=PaymentMode.OTHER)
    reference = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64, default=None)
