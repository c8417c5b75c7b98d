"""Database engine lifecycle for vote storage."""

from __future__ import annotations

import structlog
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine

from vote_pairing.core.config import VotingConfig

from .vote_repository import VoteRepository

logger = structlog.get_logger()


class VoteStore:
    """Owns the engine and the repositories built on it."""

    def __init__(self, config: VotingConfig) -> None:
        """Initialize vote store.

        Args:
            config: Voting configuration carrying the database URL.
        """
        self.config = config
        # Use NullPool to avoid connection pooling issues on Windows
        self._engine = create_engine(config.database_url, poolclass=NullPool)
        SQLModel.metadata.create_all(self._engine)
        self.votes = VoteRepository(self._engine)
        logger.info("store_init", url=config.database_url)

    async def close(self) -> None:
        """Dispose of the database engine."""
        if self._engine:
            self._engine.dispose()
