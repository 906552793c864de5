# hm_core/conftest.py
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from hm_core.catalog.models import Service
from hm_core.common.tenancy import TenantContext
from hm_core.doctors.models import Doctor
from hm_core.patients.models import Patient
from hm_core.tenants.models import Tenant


def scope_headers(tenant):
    """
    Tenant scope header as the DRF test client expects it (HTTP_ prefix).
    """
    return {"HTTP_X_TENANT_ID": str(tenant.id)}


@pytest.fixture
def tenant(db):
    return Tenant.objects.create(code="test-tenant", name="Test Hospital")


@pytest.fixture
def other_tenant(db):
    return Tenant.objects.create(code="other-tenant", name="Other Hospital")


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(username="testuser", password="testpass", is_active=True)


@pytest.fixture
def ctx(tenant, user):
    return TenantContext(tenant_id=tenant.id, actor_user_id=user.id)


@pytest.fixture
def other_ctx(other_tenant, user):
    return TenantContext(tenant_id=other_tenant.id, actor_user_id=user.id)


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def patient(tenant):
    return Patient.objects.create(
        tenant_id=tenant.id,
        uhid="UHID-001",
        first_name="Asha",
        last_name="Rao",
        phone="9876543210",
    )


@pytest.fixture
def doctor(tenant):
    return Doctor.objects.create(tenant_id=tenant.id, first_name="Vikram", last_name="Shah", specialty="General")


@pytest.fixture
def service(tenant):
    return Service.objects.create(tenant_id=tenant.id, code="CONSULT", name="Consultation", rate="500.00")
