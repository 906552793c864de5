# hm_core/appointments/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hm_core.appointments.models import Appointment, AppointmentStatus


class AppointmentSerializer(serializers.ModelSerializer):
    patient_name = serializers.SerializerMethodField()
    doctor_name = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            "id",
            "tenant_id",
            "patient",
            "patient_name",
            "doctor",
            "doctor_name",
            "scheduled_at",
            "status",
            "reason",
            "cancelled_at",
            "created_by_user_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_patient_name(self, obj) -> str:
        return f"{obj.patient.first_name} {obj.patient.last_name}".strip()

    def get_doctor_name(self, obj) -> str:
        return obj.doctor.full_name


class AppointmentCreateSerializer(serializers.Serializer):
    # Checked by AppointmentService: missing ids are invalid_payload, bad times invalid_date.
    doctor_id = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None, help_text="UUID")
    patient_id = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None, help_text="UUID")
    scheduled_at = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.CharField(help_text=f"One of: {', '.join(AppointmentStatus.values)}")
