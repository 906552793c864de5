# hm_core/appointments/api/filters.py
from __future__ import annotations

import django_filters

from hm_core.appointments.models import Appointment, AppointmentStatus
from hm_core.appointments.selectors import day_bounds


class AppointmentFilter(django_filters.FilterSet):
    """
    ?date=YYYY-MM-DD (UTC day), ?doctor=<uuid>, ?status=<status>
    """
    date = django_filters.DateFilter(method="filter_day")
    doctor = django_filters.UUIDFilter(field_name="doctor_id")
    status = django_filters.ChoiceFilter(choices=AppointmentStatus.choices)

    class Meta:
        model = Appointment
        fields = ["date", "doctor", "status"]

    def filter_day(self, queryset, name, value):
        start, end = day_bounds(value)
        return queryset.filter(scheduled_at__gte=start, scheduled_at__lt=end)
