"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking on automatic assignment
  locust -f locustfile.py --tags throughput   # Test dashboard cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from locust import HttpUser, task, between, tag, events

PASSWORD = "loadtest-password"
ROOMS = 10
TEAM_SIZE = 100

# Shared state, filled by the first ConcurrencyUser
SETUP = {"started": False, "cluster_id": None, "room_category_id": None, "event_headers": None}
PENDING_ACCOMMODATIONS = []
TEAM_IDS = []


def random_email(prefix="load"):
    suffix = "".join(random.choices(string.ascii_lowercase, k=8))
    return f"{prefix}_{suffix}@test.com"


def login_as(client, role):
    """Register a fresh user with the given role and return auth headers."""
    email = random_email(role)
    client.post("/api/v1/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "first_name": "Load",
        "last_name": role.title(),
        "role": role,
        "organization": "Load Test",
    })
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print(f"SETUP: {TEAM_SIZE} members will compete for {ROOMS} rooms")
    print("="*60)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("\nVerify no overbooking:")
    print(f"  SELECT available_rooms FROM room_categories WHERE id = {SETUP['room_category_id']};")
    print("  -- must be >= 0, and hotel_assigned/confirmed requests for it must be <= "
          f"{ROOMS}\n")


def build_inventory(client):
    """One cluster, one approved hotel, one room category with ROOMS rooms, one approved team."""
    event_headers = login_as(client, "event_manager")
    hotel_headers = login_as(client, "hotel_manager")
    team_headers = login_as(client, "team_manager")

    cluster = client.post("/api/v1/clusters/", json={"name": "Load Cluster", "city": "Test"},
                          headers=event_headers).json()
    hotel = client.post("/api/v1/hotels/", json={
        "name": "Load Hotel",
        "cluster_id": cluster["id"],
        "auto_approve_bookings": True,
    }, headers=hotel_headers).json()
    client.patch(f"/api/v1/hotels/{hotel['id']}/approve", headers=event_headers)
    room = client.post(f"/api/v1/hotels/{hotel['id']}/room-categories", json={
        "name": "Twin",
        "price_per_night": "90.00",
        "total_rooms": ROOMS,
    }, headers=hotel_headers).json()

    team = client.post("/api/v1/teams/", json={
        "team_name": "Load United",
        "sport": "Football",
        "members": [
            {"first_name": "Player", "last_name": str(i), "requires_accommodation": True}
            for i in range(TEAM_SIZE)
        ],
    }, headers=team_headers).json()
    approval = client.patch(f"/api/v1/teams/{team['id']}/approve", headers=event_headers).json()

    PENDING_ACCOMMODATIONS.extend(a["id"] for a in approval["accommodation_requests"])
    TEAM_IDS.append(team["id"])
    SETUP.update(
        cluster_id=cluster["id"],
        room_category_id=room["id"],
        event_headers=event_headers,
    )
    print(f"\n✓ Room category {room['id']} with {ROOMS} rooms, "
          f"{len(PENDING_ACCOMMODATIONS)} pending requests\n")


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 requests → 10 rooms

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    Expect exactly 10 assignments to succeed and the rest to get 409.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        if not SETUP["started"]:
            SETUP["started"] = True
            build_inventory(self.client)
        self.headers = login_as(self.client, "event_manager")

    @tag("concurrency")
    @task
    def assign_from_cluster(self):
        """Every user assigns a different member from the same small cluster."""
        if not SETUP["cluster_id"] or not PENDING_ACCOMMODATIONS or not self.headers:
            return

        accommodation_id = PENDING_ACCOMMODATIONS.pop()
        with self.client.post(f"/api/v1/accommodations/{accommodation_id}/assign",
            json={"cluster_id": SETUP["cluster_id"], "automatic": True},
            headers=self.headers,
            name="/api/v1/accommodations/{id}/assign [automatic]",
            catch_response=True
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: no rooms left
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Dashboard cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.headers = login_as(self.client, "event_manager")

    @tag("throughput", "read")
    @task(10)
    def dashboard_summary(self):
        self.client.get("/api/v1/dashboard/summary", headers=self.headers,
            name="/api/v1/dashboard/summary [cached]")

    @tag("throughput", "read")
    @task(3)
    def team_accommodations(self):
        if TEAM_IDS:
            self.client.get(f"/api/v1/accommodations/team/{random.choice(TEAM_IDS)}",
                headers=self.headers, name="/api/v1/accommodations/team/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = login_as(self.client, "event_manager")
        self.player_headers = login_as(self.client, "player")

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_accommodation(self):
        with self.client.post("/api/v1/accommodations/999999/assign",
            json={"hotel_id": 1, "room_category_id": 1},
            headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def automatic_without_cluster(self):
        with self.client.post("/api/v1/accommodations/1/assign",
            json={"automatic": True},
            headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def player_cannot_assign(self):
        with self.client.post("/api/v1/accommodations/1/assign",
            json={"hotel_id": 1, "room_category_id": 1},
            headers=self.player_headers, catch_response=True
        ) as resp:
            self._expect(resp, [403, 404])

    @tag("edge")
    @task
    def forged_qr(self):
        with self.client.post("/api/v1/accommodations/qr/verify",
            json={"qr_code": "not-a-real-token"},
            headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [403])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/teams/",
            data="not json at all",
            headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.get("/api/v1/dashboard/summary", catch_response=True) as resp:
            self._expect(resp, [401])
