"""Shared fixtures for vote pairing tests."""

import random
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

import pytest

from vote_pairing.core.config import VotingConfig
from vote_pairing.services.pairing import Candidate

TEST_SECRET = "test-signing-secret-0123456789"
BASE_TIME = datetime(2024, 6, 1, tzinfo=UTC)


class FixedRandom(random.Random):
    """Random source that replays fixed values for random()."""

    def __init__(self, values: Iterable[float]) -> None:
        super().__init__(0)
        self._values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self._values[min(self.calls, len(self._values) - 1)]
        self.calls += 1
        return value


class CountingRandom(random.Random):
    """Seeded random source that counts random() calls."""

    def __init__(self, seed: int = 0) -> None:
        super().__init__(seed)
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return super().random()


def make_candidate(
    id: str,
    owner: str | None = None,
    effort: float = 100.0,
    paid: bool = False,
    dedupe: str | None = None,
    event: str | None = None,
    day: int = 0,
) -> Candidate:
    return Candidate(
        id=id,
        owner_id=owner or f"owner-{id}",
        reference_event_id=event or f"event-{id}",
        effort=effort,
        snapshot_at=BASE_TIME + timedelta(days=day),
        dedupe_key=dedupe,
        is_compensated=paid,
        title=f"Project {id}",
    )


@pytest.fixture
def candidate_factory() -> Callable[..., Candidate]:
    return make_candidate


@pytest.fixture
def scenario_candidates() -> list[Candidate]:
    """Only 1 and 2 fit each other's effort band; 3 is paid and far off."""
    return [
        make_candidate("1", owner="U1", effort=100, day=0),
        make_candidate("2", owner="U2", effort=110, day=1),
        make_candidate("3", owner="U3", effort=500, paid=True, day=2),
    ]


@pytest.fixture
def voting_config(tmp_path) -> VotingConfig:
    return VotingConfig(
        database_url=f"duckdb:///{tmp_path / 'votes.duckdb'}",
        signing_secret=TEST_SECRET,
    )
