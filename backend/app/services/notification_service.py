"""
Guest notifications.

Email and SMS delivery are stubbed: each notice is logged with its channel
and recipient so the flow can be followed in the logs, and nothing leaves
the process.
"""

from typing import Optional

from app.models.team import TeamMember
from app.models.accommodation import AccommodationRequest
from app.core.logging import get_logger

logger = get_logger(__name__)


def _send(channel: str, recipient: Optional[str], template: str, **context) -> None:
    if not recipient:
        logger.info("notification_skipped", channel=channel, template=template, reason="no_recipient")
        return
    logger.info(
        "notification_stubbed",
        channel=channel,
        recipient=recipient,
        template=template,
        **context,
    )


def _deliver(member: Optional[TeamMember], template: str, **context) -> None:
    if member is None:
        return
    _send("email", member.email, template, **context)
    _send("sms", member.phone, template, **context)


def notify_confirmed(member: Optional[TeamMember], accommodation: AccommodationRequest) -> None:
    _deliver(
        member,
        "accommodation_confirmed",
        accommodation_id=accommodation.id,
        hotel_id=accommodation.hotel_id,
        confirmation_code=accommodation.confirmation_code,
    )


def notify_rejected(member: Optional[TeamMember], accommodation: AccommodationRequest) -> None:
    _deliver(
        member,
        "accommodation_rejected",
        accommodation_id=accommodation.id,
        reason=accommodation.hotel_response_reason,
    )


def notify_checked_out(member: Optional[TeamMember], accommodation: AccommodationRequest) -> None:
    _deliver(
        member,
        "accommodation_checked_out",
        accommodation_id=accommodation.id,
        early=accommodation.is_early_checkout,
    )
