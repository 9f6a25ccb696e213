"""
Pytest fixtures for test database, client, actors and hotel inventory.

Tables are created and dropped around every test. The database defaults
to a local SQLite file so the suite runs without PostgreSQL; point
TEST_DATABASE_URL at a PostgreSQL database to run it there. Redis is
disabled: the dashboard cache degrades to uncached reads.
"""

import os
from datetime import timedelta
from decimal import Decimal
from typing import AsyncGenerator

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL", "sqlite+aiosqlite:///./accommodation_test.db"
)
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ["REDIS_ENABLED"] = "false"

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.main import app  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.core.security import Actor, create_access_token, hash_password  # noqa: E402
from app.models import User, HotelCluster, Hotel, RoomCategory, AccommodationRequest  # noqa: E402
from app.schemas.team import TeamRequestCreate, TeamMemberCreate  # noqa: E402
from app.services import accommodation_service, team_service  # noqa: E402
from app.utils.datetime_utils import utcnow  # noqa: E402

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users, actors and tokens
# ---------------------------------------------------------------------------


async def make_user(db: AsyncSession, role: str, email: str) -> User:
    user = User(
        email=email,
        hashed_password=hash_password("testpassword123"),
        first_name=role.split("_")[0].title(),
        last_name="Tester",
        role=role,
        organization="Test Federation",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def actor_for(user: User) -> Actor:
    return Actor(user_id=user.id, role=user.role)


def headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def event_manager(db_session: AsyncSession) -> User:
    return await make_user(db_session, "event_manager", "events@example.com")


@pytest_asyncio.fixture
async def hotel_manager(db_session: AsyncSession) -> User:
    return await make_user(db_session, "hotel_manager", "hotel@example.com")


@pytest_asyncio.fixture
async def other_hotel_manager(db_session: AsyncSession) -> User:
    return await make_user(db_session, "hotel_manager", "other-hotel@example.com")


@pytest_asyncio.fixture
async def team_manager(db_session: AsyncSession) -> User:
    return await make_user(db_session, "team_manager", "coach@example.com")


@pytest_asyncio.fixture
async def player(db_session: AsyncSession) -> User:
    return await make_user(db_session, "player", "player@example.com")


@pytest_asyncio.fixture
async def event_actor(event_manager: User) -> Actor:
    return actor_for(event_manager)


@pytest_asyncio.fixture
async def hotel_actor(hotel_manager: User) -> Actor:
    return actor_for(hotel_manager)


@pytest_asyncio.fixture
async def team_actor(team_manager: User) -> Actor:
    return actor_for(team_manager)


@pytest_asyncio.fixture
async def player_actor(player: User) -> Actor:
    return actor_for(player)


# ---------------------------------------------------------------------------
# Hotel inventory
# ---------------------------------------------------------------------------


async def make_room(
    db: AsyncSession,
    hotel: Hotel,
    *,
    name: str = "Twin",
    price: str = "100.00",
    total: int = 5,
    available: int = None,
) -> RoomCategory:
    room = RoomCategory(
        hotel_id=hotel.id,
        name=name,
        price_per_night=Decimal(price),
        total_rooms=total,
        available_rooms=total if available is None else available,
        max_occupancy=2,
    )
    db.add(room)
    await db.commit()
    await db.refresh(room)
    return room


async def make_hotel(
    db: AsyncSession,
    manager: User,
    cluster: HotelCluster = None,
    *,
    name: str = "Harbour Hotel",
    approved: str = "approved",
    auto_approve: bool = False,
) -> Hotel:
    hotel = Hotel(
        name=name,
        address="1 Harbour Road",
        cluster_id=cluster.id if cluster else None,
        manager_id=manager.id,
        approved=approved,
        auto_approve_bookings=auto_approve,
    )
    db.add(hotel)
    await db.commit()
    await db.refresh(hotel)
    return hotel


@pytest_asyncio.fixture
async def cluster(db_session: AsyncSession, event_manager: User) -> HotelCluster:
    cluster = HotelCluster(name="Stadium District", city="Testville", created_by=event_manager.id)
    db_session.add(cluster)
    await db_session.commit()
    await db_session.refresh(cluster)
    return cluster


@pytest_asyncio.fixture
async def hotel(db_session: AsyncSession, hotel_manager: User, cluster: HotelCluster) -> Hotel:
    """Approved hotel in the cluster, run by hotel_manager."""
    return await make_hotel(db_session, hotel_manager, cluster)


@pytest_asyncio.fixture
async def room(db_session: AsyncSession, hotel: Hotel) -> RoomCategory:
    """Room category with 5 of 5 rooms free."""
    return await make_room(db_session, hotel)


# ---------------------------------------------------------------------------
# Teams and accommodation requests
# ---------------------------------------------------------------------------


def team_payload(members: int = 3, player_id: int = None, **overrides) -> TeamRequestCreate:
    """Team of `members` who all need rooms; the first one is linked to player_id."""
    now = utcnow()
    data = {
        "team_name": "Testville Rovers",
        "sport": "Football",
        "tournament_id": 1,
        "check_in_date": now - timedelta(days=1),
        "check_out_date": now + timedelta(days=3),
        "members": [
            TeamMemberCreate(
                first_name=f"Member{i}",
                last_name="Rover",
                email=f"member{i}@example.com",
                phone=f"+1555000{i:04d}",
                user_id=player_id if i == 0 else None,
                requires_accommodation=True,
                accommodation_preferences="Ground floor" if i == 0 else None,
            )
            for i in range(members)
        ],
    }
    data.update(overrides)
    return TeamRequestCreate(**data)


@pytest_asyncio.fixture
async def approved_team(db_session: AsyncSession, team_actor: Actor, event_actor: Actor, player: User):
    """Approved team of three; returns (team_request, accommodation_requests)."""
    team_request = await team_service.create_team_request(
        db_session, team_actor, team_payload(player_id=player.id)
    )
    team_request, accommodations = await team_service.approve_team_request(
        db_session, event_actor, team_request.id
    )
    await db_session.commit()
    return team_request, accommodations


@pytest_asyncio.fixture
async def pending_accommodation(approved_team) -> AccommodationRequest:
    """The request of the member linked to the player account."""
    _, accommodations = approved_team
    return accommodations[0]


@pytest_asyncio.fixture
async def assigned_accommodation(
    db_session: AsyncSession,
    event_actor: Actor,
    pending_accommodation: AccommodationRequest,
    hotel: Hotel,
    room: RoomCategory,
) -> AccommodationRequest:
    accommodation = await accommodation_service.assign_hotel(
        db_session, event_actor, pending_accommodation.id,
        hotel_id=hotel.id, room_category_id=room.id,
    )
    await db_session.commit()
    return accommodation


@pytest_asyncio.fixture
async def confirmed_accommodation(
    db_session: AsyncSession,
    hotel_actor: Actor,
    assigned_accommodation: AccommodationRequest,
) -> AccommodationRequest:
    accommodation = await accommodation_service.respond_to_assignment(
        db_session, hotel_actor, assigned_accommodation.id, approve=True,
    )
    await db_session.commit()
    return accommodation
