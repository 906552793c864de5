# hm_core/patients/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from hm_core.common.api.exceptions import DuplicateNaturalKey, build_error_envelope
from hm_core.common.api.params import uuid_or_none
from hm_core.common.tenancy import require_tenant, tenant_scope
from hm_core.patients.api.serializers import (
    PatientCreateSerializer,
    PatientSerializer,
    PatientUpdateSerializer,
)
from hm_core.patients.models import Patient
from hm_core.patients.selectors import get_patient, search_patients
from hm_core.patients.services import PatientService


class PatientViewSet(viewsets.ViewSet):
    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    @extend_schema(
        tags=["Patients"],
        responses={200: PatientSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        ctx = require_tenant(request)
        q = request.query_params.get("q", "").strip()

        with tenant_scope(ctx):
            data = PatientSerializer(search_patients(tenant_id=ctx.tenant_id, q=q), many=True).data
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientCreateSerializer, responses={200: OpenApiTypes.OBJECT, 201: OpenApiTypes.OBJECT})
    def create(self, request):
        """
        Idempotent by natural key: an existing uhid/phone returns 200 with the
        existing record instead of creating a duplicate.
        """
        ctx = require_tenant(request)

        ser = PatientCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = PatientService.find_or_create(ctx=ctx, **ser.validated_data)

        body = {"created": result.created, "patient": PatientSerializer(result.patient).data}
        if not result.created:
            body["message"] = "exists"
        return Response(body, status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        ctx = require_tenant(request)
        with tenant_scope(ctx):
            patient = get_patient(tenant_id=ctx.tenant_id, patient_id=uuid_or_none(pk, "id"))
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientUpdateSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        ctx = require_tenant(request)

        ser = PatientUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            patient = PatientService.update_patient(ctx=ctx, patient_id=uuid_or_none(pk, "id"), data=ser.validated_data)
        except DuplicateNaturalKey as exc:
            return Response(
                build_error_envelope(
                    request=request,
                    code=exc.default_code,
                    message=str(exc.detail),
                    details={"field": exc.field, "existing": PatientSerializer(exc.existing).data},
                ),
                status=exc.status_code,
            )
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)
