from io import StringIO

import pytest
from django.core.management import call_command

from hm_core.catalog.models import Service
from hm_core.common.api.exceptions import InvalidPayload
from hm_core.doctors.models import Doctor
from hm_core.patients.models import Patient
from hm_core.tenants.models import Tenant, TenantStatus
from hm_core.tenants.services import TenantService

pytestmark = pytest.mark.django_db


def test_tenant_create_and_ensure():
    t = TenantService.create(name=" City Hospital ", code="city")
    assert t.name == "City Hospital"
    assert t.status == TenantStatus.ACTIVE

    assert TenantService.ensure(name="ignored", code="city").id == t.id
    assert Tenant.objects.count() == 1


def test_tenant_create_validates():
    with pytest.raises(InvalidPayload):
        TenantService.create(name="No Code", code=" ")


def test_seed_demo_is_idempotent():
    out = StringIO()
    call_command("seed_demo", stdout=out)
    call_command("seed_demo", stdout=out)

    tenant = Tenant.objects.get(code="default-hms")
    assert Patient.objects.filter(tenant_id=tenant.id).count() == 1
    assert Doctor.objects.filter(tenant_id=tenant.id).count() == 1
    assert Service.objects.filter(tenant_id=tenant.id, code="CONS-001").count() == 1
    assert "Seed OK" in out.getvalue()
