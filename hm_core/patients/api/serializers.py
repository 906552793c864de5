# hm_core/patients/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hm_core.patients.models import Gender, Patient


class PatientCreateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=128)
    last_name = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    uhid = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True, default=None)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True, default=None)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, default=Gender.UNSPECIFIED)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    address = serializers.CharField(required=False, allow_blank=True, default="")
    meta = serializers.JSONField(required=False, default=dict)


class PatientUpdateSerializer(serializers.Serializer):
    """
    Partial update contract (PATCH).
    """
    first_name = serializers.CharField(max_length=128, required=False)
    last_name = serializers.CharField(max_length=128, required=False, allow_blank=True)
    uhid = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    address = serializers.CharField(required=False, allow_blank=True)
    meta = serializers.JSONField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class PatientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Patient
        fields = [
            "id",
            "tenant_id",
            "uhid",
            "first_name",
            "last_name",
            "phone",
            "email",
            "gender",
            "date_of_birth",
            "address",
            "meta",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
