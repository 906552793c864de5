# hm_core/appointments/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from hm_core.appointments.api.filters import AppointmentFilter
from hm_core.appointments.api.serializers import (
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentStatusSerializer,
)
from hm_core.appointments.models import Appointment
from hm_core.appointments.selectors import appointments_for_day, appointments_qs
from hm_core.appointments.services import AppointmentService
from hm_core.common.api.exceptions import InvalidPayload, SlotTaken, build_error_envelope
from hm_core.common.api.pagination import paginate
from hm_core.common.tenancy import require_tenant, tenant_scope


def _slot_taken_response(request, exc: SlotTaken) -> Response:
    return Response(
        build_error_envelope(
            request=request,
            code=exc.default_code,
            message=str(exc.detail),
            details={"conflict": AppointmentSerializer(exc.conflict).data},
        ),
        status=exc.status_code,
    )


class AppointmentViewSet(viewsets.ViewSet):
    """
    Appointments v1:
    - list (defaults to today, UTC)
    - book
    - status transitions
    """
    serializer_class = AppointmentSerializer
    queryset = Appointment.objects.none()

    @extend_schema(
        tags=["Appointments"],
        responses={200: AppointmentSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="doctor", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        ctx = require_tenant(request)

        with tenant_scope(ctx):
            if request.query_params.get("date"):
                qs = appointments_qs(tenant_id=ctx.tenant_id).order_by("scheduled_at")
            else:
                qs = appointments_for_day(tenant_id=ctx.tenant_id)

            f = AppointmentFilter(request.query_params, queryset=qs)
            if not f.is_valid():
                raise InvalidPayload(f.errors)
            return paginate(request, f.qs, AppointmentSerializer)

    @extend_schema(tags=["Appointments"], request=AppointmentCreateSerializer, responses={201: AppointmentSerializer})
    def create(self, request):
        ctx = require_tenant(request)

        ser = AppointmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            appt = AppointmentService.book(ctx=ctx, **ser.validated_data)
        except SlotTaken as exc:
            return _slot_taken_response(request, exc)

        with tenant_scope(ctx):
            data = AppointmentSerializer(appointments_qs(tenant_id=ctx.tenant_id).get(id=appt.id)).data
        return Response(data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Appointments"], request=AppointmentStatusSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        ctx = require_tenant(request)

        ser = AppointmentStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            appt = AppointmentService.set_status(ctx=ctx, appointment_id=pk, status=ser.validated_data["status"])
        except SlotTaken as exc:
            return _slot_taken_response(request, exc)

        with tenant_scope(ctx):
            data = AppointmentSerializer(appointments_qs(tenant_id=ctx.tenant_id).get(id=appt.id)).data
        return Response(data, status=status.HTTP_200_OK)
