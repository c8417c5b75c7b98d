"""Request and response shapes at the voting service boundary."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

TIE = "tie"


class CandidateSummary(BaseModel):
    """What a voter sees about one side of the pair."""

    id: str
    reference_event_id: str
    title: str
    demo_link: str | None = None
    repo_link: str | None = None
    used_ai: bool = False
    time_spent: float


class PairingOffer(BaseModel):
    """A freshly selected pair plus the ticket needed to vote on it."""

    event_a_id: str
    event_b_id: str
    candidates: list[CandidateSummary] = Field(min_length=2, max_length=2)
    signature: str
    submitted_votes_count: int = 0


class VoteTelemetry(BaseModel):
    """Optional interaction data recorded with a vote."""

    candidate_a_demo_opened: bool = False
    candidate_a_repo_opened: bool = False
    candidate_b_demo_opened: bool = False
    candidate_b_repo_opened: bool = False
    time_spent_voting_ms: int | None = Field(default=None, ge=0)
    music_played: bool = False


class VoteSubmission(BaseModel):
    """Vote as submitted by a client, before ticket verification."""

    event_a_id: str
    event_b_id: str
    candidate_a_id: str
    candidate_b_id: str
    signature: str = Field(min_length=1)
    winner: str = Field(min_length=1)
    rationale: str | None = None
    telemetry: VoteTelemetry = Field(default_factory=VoteTelemetry)

    @field_validator(
        "event_a_id", "event_b_id", "candidate_a_id", "candidate_b_id", "winner", mode="before"
    )
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Accept integer ids from clients."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_tie(self) -> bool:
        return self.winner == TIE

    @property
    def winner_candidate_id(self) -> str | None:
        return None if self.is_tie else self.winner


class VoteAccepted(BaseModel):
    success: Literal[True] = True
    vote_id: str


class ErrorResponse(BaseModel):
    """Structured, non-fatal failure returned to the caller."""

    error: str
    fields: dict[str, str] | None = None
