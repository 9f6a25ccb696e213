"""
Confirmation code and QR token issuance.

Confirmation codes are short and meant to be read over the phone, so they
are drawn from an alphabet without look-alike characters. They are unique
but not predictable: a collision with an existing code is retried with a
fresh random draw, never incremented.

QR tokens are opaque and bound to one stay. Checking out rotates the token,
so a printed or downloaded QR stops authorising entry once the guest has
left.
"""

import secrets
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.accommodation import AccommodationRequest, CONFIRMED, CHECKED_OUT
from app.core.config import get_settings
from app.core.exceptions import WorkflowError, Unauthorized
from app.core.metrics import record_code_collision
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def random_confirmation_code(length: Optional[int] = None) -> str:
    length = length or settings.CONFIRMATION_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def new_qr_token() -> str:
    return secrets.token_urlsafe(settings.QR_TOKEN_BYTES)


async def issue_confirmation_code(
    db: AsyncSession,
    code_factory: Callable[[], str] = random_confirmation_code,
) -> str:
    """
    Draw a confirmation code that no other request holds.
    Retries up to CONFIRMATION_CODE_MAX_ATTEMPTS on collision.
    """
    for attempt in range(1, settings.CONFIRMATION_CODE_MAX_ATTEMPTS + 1):
        code = code_factory()
        existing = await db.execute(
            select(AccommodationRequest.id).where(AccommodationRequest.confirmation_code == code)
        )
        if existing.scalar_one_or_none() is None:
            return code

        record_code_collision()
        logger.info("confirmation_code_collision", attempt=attempt)

    raise WorkflowError("Could not issue a unique confirmation code")


async def verify_qr_token(db: AsyncSession, qr_code: str) -> AccommodationRequest:
    """
    Resolve a scanned QR token to the stay it authorises.

    Only the current token of a confirmed, not yet checked-out stay is
    accepted. Rotated tokens no longer match any row.
    """
    result = await db.execute(
        select(AccommodationRequest).where(AccommodationRequest.qr_code == qr_code)
    )
    accommodation = result.scalar_one_or_none()

    if accommodation is None:
        logger.warning("qr_rejected", reason="unknown_token")
        raise Unauthorized("QR code is not valid")

    if accommodation.status != CONFIRMED or accommodation.check_out_status == CHECKED_OUT:
        logger.warning(
            "qr_rejected",
            reason="stay_not_active",
            accommodation_id=accommodation.id,
            status=accommodation.status,
        )
        raise Unauthorized("QR code is no longer valid", accommodation_id=accommodation.id)

    return accommodation
