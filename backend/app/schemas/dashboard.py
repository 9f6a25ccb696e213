"""
Pydantic schemas for dashboard read models.
"""

from pydantic import BaseModel


class DashboardSummary(BaseModel):
    status_counts: dict[str, int]
    awaiting_hotel_response: int
    needs_reassignment: int
    incomplete_teams: int
    cached: bool = False


class IncompleteTeam(BaseModel):
    team_request_id: int
    team_name: str
    total_requests: int
    confirmed: int
    outstanding: int
