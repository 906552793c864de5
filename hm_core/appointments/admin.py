# hm_core/appointments/admin.py
from __future__ import annotations

from django.contrib import admin

from hm_core.appointments.models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("scheduled_at", "doctor", "patient", "status", "tenant_id", "cancelled_at")
    list_filter = ("tenant_id", "status", "scheduled_at")
    search_fields = ("patient__first_name", "patient__last_name", "doctor__first_name", "doctor__last_name")
    ordering = ("-scheduled_at",)
