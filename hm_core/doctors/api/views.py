from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from hm_core.common.tenancy import require_tenant, tenant_scope
from hm_core.doctors.api.serializers import DoctorSerializer
from hm_core.doctors.models import Doctor
from hm_core.doctors.selectors import list_doctors


class DoctorViewSet(viewsets.ViewSet):
    """
    Read-only doctor directory for the active tenant.
    """
    serializer_class = DoctorSerializer
    queryset = Doctor.objects.none()

    @extend_schema(tags=["Doctors"], responses={200: DoctorSerializer(many=True)})
    def list(self, request):
        ctx = require_tenant(request)
        with tenant_scope(ctx):
            data = DoctorSerializer(list_doctors(tenant_id=ctx.tenant_id), many=True).data
        return Response(data, status=status.HTTP_200_OK)
