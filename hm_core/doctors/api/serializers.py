from __future__ import annotations

from rest_framework import serializers

from hm_core.doctors.models import Doctor


class DoctorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Doctor
        fields = [
            "id",
            "tenant_id",
            "first_name",
            "last_name",
            "specialty",
            "phone",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields
