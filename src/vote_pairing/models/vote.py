import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Vote(SQLModel, table=True):
    """A persisted head-to-head decision. Written once, never updated."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    voter_id: str = Field(index=True)
    event_a_id: str = Field(index=True)
    event_b_id: str = Field(index=True)
    candidate_a_id: str
    candidate_b_id: str
    winner_candidate_id: str | None = None  # None means tie
    rationale: str = ""
    candidate_a_demo_opened: bool = False
    candidate_a_repo_opened: bool = False
    candidate_b_demo_opened: bool = False
    candidate_b_repo_opened: bool = False
    time_spent_voting_ms: int | None = None
    music_played: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
