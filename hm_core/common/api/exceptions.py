# hm_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Safe to call from middleware and DRF exception handler.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope.
    Reusable from Django middleware (JsonResponse) and DRF (Response).
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": rid,
        }
    }


# -------------------------------------------------------------------
# Domain errors
# -------------------------------------------------------------------

class DomainValidationError(ValidationError):
    """
    400 with a stable, specific error code (instead of the generic validation_error).
    Raised before any persistence happens.
    """
    default_detail = "Invalid input."
    default_code = "validation_error"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail if detail is not None else self.default_detail, code=code or self.default_code)


class TenantRequired(DomainValidationError):
    default_detail = "Missing tenant scope."
    default_code = "tenant_required"


class InvalidPayload(DomainValidationError):
    default_detail = "Invalid payload."
    default_code = "invalid_payload"


class InvalidAmount(DomainValidationError):
    default_detail = "Invalid amount."
    default_code = "invalid_amount"


class InvalidDate(DomainValidationError):
    default_detail = "Invalid date."
    default_code = "invalid_date"


class InvalidStatus(DomainValidationError):
    default_detail = "Invalid status."
    default_code = "invalid_status"


class PatientNotFound(NotFound):
    default_detail = "Patient not found."
    default_code = "patient_not_found"


class InvoiceNotFound(NotFound):
    default_detail = "Invoice not found."
    default_code = "invoice_not_found"


class DoctorNotFound(NotFound):
    default_detail = "Doctor not found."
    default_code = "doctor_not_found"


class AppointmentNotFound(NotFound):
    default_detail = "Appointment not found."
    default_code = "appointment_not_found"


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Use when the request is valid but collides with existing state.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class SlotTaken(ConflictError):
    """
    Carries the appointment already holding the slot so the caller can decide.
    """
    default_detail = "Time slot already taken for this doctor."
    default_code = "time_slot_taken"

    def __init__(self, conflict, detail=None):
        self.conflict = conflict
        super().__init__(detail=detail)


class DuplicateNaturalKey(ConflictError):
    """
    Carries the record that already owns the natural key (uhid / phone).
    """
    default_detail = "A record with this natural key already exists."
    default_code = "duplicate_natural_key"

    def __init__(self, existing, field: str = "", detail=None):
        self.existing = existing
        self.field = field
        super().__init__(detail=detail)


class PersistenceFailure(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Persistence failure."
    default_code = "persistence_failure"


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, DomainValidationError):
        return exc.default_code
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def _message_and_details(data) -> tuple[str, Any]:
    # 1) {"detail": "..."} only -> message=detail, details=None
    # 2) {"detail": "...", ...} -> message=detail, details={...without detail}
    # 3) ["..."] -> message=first item, details=None
    # 4) otherwise -> message="Request failed.", details=data
    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data.get("detail")), (rest or None)
    if isinstance(data, list) and len(data) == 1 and isinstance(data[0], str):
        return str(data[0]), None
    return "Request failed.", data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        logger.exception("Unhandled API error", exc_info=exc)
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                details=None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)
    message, details = _message_and_details(response.data)

    if isinstance(exc, PersistenceFailure):
        logger.error("Persistence failure", exc_info=exc.__cause__ or exc)

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
