"""
Tests for confirmation codes and QR tokens.
"""

import pytest

from app.core.exceptions import Unauthorized, WorkflowError
from app.services import accommodation_service
from app.services.confirmation_service import (
    CODE_ALPHABET,
    issue_confirmation_code,
    new_qr_token,
    random_confirmation_code,
    verify_qr_token,
)


def test_codes_avoid_look_alike_characters():
    code = random_confirmation_code()

    assert len(code) == 8
    assert set(code) <= set(CODE_ALPHABET)
    assert not set("01OI") & set(CODE_ALPHABET)


def test_qr_tokens_are_opaque_and_fresh():
    tokens = {new_qr_token() for _ in range(20)}
    assert len(tokens) == 20
    assert all(len(token) <= 64 for token in tokens)


@pytest.mark.asyncio
async def test_collision_draws_a_new_code(db_session, confirmed_accommodation):
    taken = confirmed_accommodation.confirmation_code
    draws = iter([taken, taken, "FRESH234"])

    code = await issue_confirmation_code(db_session, code_factory=lambda: next(draws))

    assert code == "FRESH234"


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(db_session, confirmed_accommodation):
    taken = confirmed_accommodation.confirmation_code

    with pytest.raises(WorkflowError) as exc_info:
        await issue_confirmation_code(db_session, code_factory=lambda: taken)
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_qr_verification_needs_a_confirmed_stay(db_session, assigned_accommodation):
    with pytest.raises(Unauthorized):
        await verify_qr_token(db_session, "unknown-token")
    # Not confirmed yet, so no token has been issued
    assert assigned_accommodation.qr_code is None


@pytest.mark.asyncio
async def test_confirmed_codes_are_unique(db_session, approved_team, event_actor, hotel_actor, hotel, room):
    _, accommodations = approved_team
    codes = set()
    for accommodation in accommodations:
        await accommodation_service.assign_hotel(
            db_session, event_actor, accommodation.id, hotel_id=hotel.id, room_category_id=room.id,
        )
        confirmed = await accommodation_service.respond_to_assignment(
            db_session, hotel_actor, accommodation.id, approve=True,
        )
        codes.add(confirmed.confirmation_code)

    assert len(codes) == len(accommodations)
