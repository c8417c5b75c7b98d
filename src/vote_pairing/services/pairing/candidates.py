"""Candidate records and per-voter eligibility filtering."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

import structlog

logger = structlog.get_logger()

MIN_PAIR_SIZE = 2


@dataclass(frozen=True)
class Candidate:
    """A project eligible for comparison, pinned to one snapshot event.

    Attributes:
        id: Unique project identifier.
        owner_id: Identity of the project's creator.
        reference_event_id: Snapshot ("ship") event the effort is measured
            against. Pairing tickets bind this id, not the project id.
        effort: Seconds of logged work up to the snapshot.
        snapshot_at: When the snapshot was taken; drives priority ordering.
        dedupe_key: Secondary identity such as the repository link. Two
            candidates sharing a non-empty key are never paired.
        is_compensated: Whether the snapshot has already been paid out.
        title: Display title.
        demo_link: Optional demo URL.
        used_ai: Whether AI use was declared, None when unknown.
    """

    id: str
    owner_id: str
    reference_event_id: str
    effort: float
    snapshot_at: datetime
    dedupe_key: str | None = None
    is_compensated: bool = False
    title: str = ""
    demo_link: str | None = None
    used_ai: bool | None = None

    def conflicts_with(self, other: Candidate) -> bool:
        """Whether the two candidates may never appear in the same pair."""
        if self.owner_id == other.owner_id:
            return True
        return bool(self.dedupe_key) and self.dedupe_key == other.dedupe_key


@dataclass(frozen=True)
class VoterHistory:
    """Reference-event ids a voter has already judged."""

    event_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_event_ids(cls, event_ids: Iterable[str | int]) -> VoterHistory:
        return cls(frozenset(str(event_id) for event_id in event_ids))

    def __contains__(self, event_id: object) -> bool:
        return str(event_id) in self.event_ids

    def __len__(self) -> int:
        return len(self.event_ids)


def filter_candidates(
    candidates: Iterable[Candidate],
    voter_id: str,
    history: VoterHistory,
) -> list[Candidate]:
    """Return the candidates this voter may still be asked to judge.

    Drops snapshots the voter already judged, the voter's own projects and
    zero-effort candidates. Fewer than two survivors means voting is
    temporarily unavailable, reported as an empty list.

    Args:
        candidates: All vote-eligible candidates.
        voter_id: The requesting voter.
        history: Events the voter already judged.

    Returns:
        Eligible candidates in input order, or [] if fewer than two remain.
    """
    eligible = [
        c
        for c in candidates
        if c.reference_event_id not in history and c.owner_id != voter_id and c.effort > 0
    ]

    if len(eligible) < MIN_PAIR_SIZE:
        logger.debug("too_few_eligible", voter=voter_id, eligible=len(eligible))
        return []
    return eligible
