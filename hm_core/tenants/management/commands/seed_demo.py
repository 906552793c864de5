# hm_core/tenants/management/commands/seed_demo.py

from django.core.management.base import BaseCommand

from hm_core.catalog.services import CatalogService
from hm_core.common.tenancy import TenantContext, tenant_scope
from hm_core.doctors.models import Doctor
from hm_core.patients.services import PatientService
from hm_core.tenants.services import TenantService


class Command(BaseCommand):
    help = "Seed a demo tenant with one patient, one doctor and one catalog service (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--code", default="default-hms", help="Tenant code.")
        parser.add_argument("--name", default="Default HMS Tenant", help="Tenant name.")

    def handle(self, *args, **options):
        tenant = TenantService.ensure(name=options["name"], code=options["code"])
        ctx = TenantContext(tenant_id=tenant.id)

        patient = PatientService.find_or_create(
            ctx=ctx,
            uhid="UHID-0001",
            first_name="Walkin",
            last_name="Patient",
            phone="+919999999999",
        ).patient

        service = CatalogService.upsert(ctx=ctx, code="CONS-001", name="Consultation Fee", rate="500.00")

        with tenant_scope(ctx):
            doctor, _ = Doctor.objects.get_or_create(
                tenant_id=tenant.id,
                first_name="Duty",
                last_name="Doctor",
                defaults={"specialty": "General Medicine"},
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed OK. tenant={tenant.id} patient={patient.id} doctor={doctor.id} service={service.id}"
            )
        )
