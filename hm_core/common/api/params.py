# hm_core/common/api/params.py
from __future__ import annotations

from uuid import UUID

from hm_core.common.api.exceptions import InvalidPayload


def uuid_or_none(value, field_name: str) -> UUID | None:
    """
    Query/path/body UUID parsing that keeps malformed ids inside the error envelope.
    """
    if value in (None, ""):
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidPayload({field_name: "Invalid UUID"})
