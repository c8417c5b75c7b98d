"""Database persistence for votes and voter history."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func
from sqlmodel import Session, col, select

from vote_pairing.models import Vote

from .repository import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


class VoteRepository(AsyncRepository):
    """Persist votes and answer voter-history queries."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    async def save_vote(self, vote: Vote) -> Vote:
        """Insert a vote. Votes are never updated afterwards."""

        def _save(session: Session) -> Vote:
            session.add(vote)
            session.commit()
            session.refresh(vote)
            return vote

        saved = await self._run_session(_save)
        logger.debug("saved_vote", vote_id=saved.id, voter=saved.voter_id)
        return saved

    async def get_judged_event_ids(self, voter_id: str) -> set[str]:
        """All snapshot events that appear in any of the voter's votes."""

        def _get(session: Session) -> set[str]:
            statement = select(Vote.event_a_id, Vote.event_b_id).where(Vote.voter_id == voter_id)
            rows = session.exec(statement).all()
            return {event_id for row in rows for event_id in row}

        return await self._run_session(_get)

    async def count_votes(self, voter_id: str) -> int:
        """Number of votes the voter has submitted."""

        def _count(session: Session) -> int:
            statement = select(func.count()).select_from(Vote).where(Vote.voter_id == voter_id)
            return session.exec(statement).one()

        return await self._run_session(_count)

    async def get_votes_for_voter(self, voter_id: str) -> list[Vote]:
        """Votes by one voter, oldest first."""

        def _get(session: Session) -> list[Vote]:
            statement = (
                select(Vote).where(Vote.voter_id == voter_id).order_by(col(Vote.created_at))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)
