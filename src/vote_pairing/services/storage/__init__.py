from .store import VoteStore
from .vote_repository import VoteRepository

__all__ = ["VoteRepository", "VoteStore"]
