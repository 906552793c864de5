# hm_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from hm_core.appointments.api.views import AppointmentViewSet
from hm_core.billing.api.views import InvoicePaymentsView, InvoiceViewSet
from hm_core.doctors.api.views import DoctorViewSet
from hm_core.messaging.api.views import InvoiceSendView
from hm_core.patients.api.views import PatientViewSet

router = DefaultRouter()

router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"doctors", DoctorViewSet, basename="doctors")
router.register(r"appointments", AppointmentViewSet, basename="appointments")
router.register(r"billing/invoices", InvoiceViewSet, basename="billing-invoices")

urlpatterns = [
    # Auth (JWT)
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),

    # Invoice payments / delivery (non-ViewSet endpoints)
    path(
        "billing/invoices/<uuid:invoice_id>/payments/",
        InvoicePaymentsView.as_view(),
        name="billing-invoice-payments",
    ),
    path(
        "billing/invoices/<uuid:invoice_id>/send/",
        InvoiceSendView.as_view(),
        name="billing-invoice-send",
    ),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
