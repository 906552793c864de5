# hm_core/messaging/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hm_core.messaging.models import MessageChannel, MessageLog


class InvoiceSendSerializer(serializers.Serializer):
    channel = serializers.ChoiceField(choices=MessageChannel.choices, required=False, default=MessageChannel.WHATSAPP)


class MessageLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = MessageLog
        fields = [
            "id",
            "tenant_id",
            "patient",
            "invoice",
            "channel",
            "to",
            "provider",
            "status",
            "provider_id",
            "error",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
