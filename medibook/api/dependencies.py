"""FastAPI dependencies and error translation shared by the routers."""

from __future__ import annotations

import uuid
from typing import NoReturn

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.api.middleware import REJECTION_REASON_HEADER
from medibook.config import get_settings
from medibook.core.database import get_db
from medibook.scheduling.booking import BookingService
from medibook.scheduling.errors import (
    BookingError,
    DuplicateRecordError,
    RecordNotFoundError,
    SlotRejectedError,
    StorageError,
)


async def get_booking_service(
    request: Request, db: AsyncSession = Depends(get_db)
) -> BookingService:
    """Booking service bound to the request's session and caller address."""
    settings = get_settings()
    return BookingService(
        db,
        failure_policy=settings.availability_failure_policy,
        client_host=request.client.host if request.client else None,
    )


def parse_uuid(value: str, name: str = "ID") -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name}: {value}")


def raise_http_error(exc: BookingError) -> NoReturn:
    """Translate a booking-core exception into the matching HTTP response."""
    if isinstance(exc, SlotRejectedError):
        raise HTTPException(
            status_code=409,
            detail={"reason": exc.reason.value, "message": exc.message},
            headers={REJECTION_REASON_HEADER: exc.reason.value},
        ) from exc
    if isinstance(exc, RecordNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, DuplicateRecordError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if isinstance(exc, StorageError):
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    raise HTTPException(status_code=500, detail="Booking failed") from exc
