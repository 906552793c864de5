from django.contrib import admin

from hm_core.doctors.models import Doctor


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "specialty", "is_active", "tenant_id")
    list_filter = ("tenant_id", "is_active", "specialty")
    search_fields = ("first_name", "last_name", "phone")
    ordering = ("first_name",)
