"""Candidate sources consumed by the voting service."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

import pydantic
import structlog
import yaml
from pydantic import BaseModel, Field

from vote_pairing.core.errors import ValidationError
from vote_pairing.services.pairing import Candidate

logger = structlog.get_logger()


@runtime_checkable
class CandidateSource(Protocol):
    """Upstream listing of vote-eligible candidates.

    Implementations return only approved projects, one entry per project
    pinned to its latest snapshot, excluding projects owned by the voter.
    """

    async def list_candidates(self, voter_id: str) -> list[Candidate]:
        """Candidates the voter could be shown."""
        ...

    async def get_candidate_for_event(self, event_id: str) -> Candidate | None:
        """Candidate pinned to the given snapshot event, if any."""
        ...


class CandidateRecord(BaseModel):
    """One snapshot of a project as stored in a candidates file."""

    id: str
    owner_id: str
    reference_event_id: str
    effort: float = Field(ge=0)
    snapshot_at: datetime
    repo_link: str | None = None
    is_compensated: bool = False
    approved: bool = True
    title: str = ""
    demo_link: str | None = None
    used_ai: bool | None = None

    def to_candidate(self) -> Candidate:
        return Candidate(
            id=self.id,
            owner_id=self.owner_id,
            reference_event_id=self.reference_event_id,
            effort=self.effort,
            snapshot_at=self.snapshot_at,
            dedupe_key=self.repo_link or None,
            is_compensated=self.is_compensated,
            title=self.title,
            demo_link=self.demo_link,
            used_ai=self.used_ai,
        )


def latest_snapshots(records: Iterable[CandidateRecord]) -> list[Candidate]:
    """Keep approved records, one per project at its latest snapshot."""
    latest: dict[str, CandidateRecord] = {}
    for record in records:
        if not record.approved:
            continue
        current = latest.get(record.id)
        if current is None or record.snapshot_at > current.snapshot_at:
            latest[record.id] = record
    return [record.to_candidate() for record in latest.values()]


class InMemoryCandidateSource:
    """Candidate source over an in-memory list of candidates.

    `superseded` holds older snapshots that are no longer listed but must
    still resolve by event id, so tickets issued before a reship verify.
    """

    def __init__(
        self, candidates: Iterable[Candidate], superseded: Iterable[Candidate] = ()
    ) -> None:
        self._candidates = list(candidates)
        self._by_event = {c.reference_event_id: c for c in superseded}
        self._by_event.update((c.reference_event_id, c) for c in self._candidates)

    async def list_candidates(self, voter_id: str) -> list[Candidate]:
        return [c for c in self._candidates if c.owner_id != voter_id]

    async def get_candidate_for_event(self, event_id: str) -> Candidate | None:
        return self._by_event.get(str(event_id))


class FileCandidateSource(InMemoryCandidateSource):
    """Candidate source loaded from a YAML (or JSON) candidates file.

    The file holds a top-level `candidates` list of CandidateRecord entries.
    Every approved snapshot stays resolvable by event id, but only the
    latest one of each project is listed.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        records = load_candidate_records(self.path)
        super().__init__(
            latest_snapshots(records),
            superseded=[r.to_candidate() for r in records if r.approved],
        )
        logger.info("candidates_loaded", path=str(self.path), count=len(self._candidates))

    @classmethod
    async def open(cls, path: str | Path) -> FileCandidateSource:
        """Load the file on a worker thread."""
        return await asyncio.to_thread(cls, path)


def load_candidate_records(path: Path) -> list[CandidateRecord]:
    """Parse and validate a candidates file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValidationError: If an entry is malformed.
    """
    if not path.exists():
        msg = f"Candidates file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("candidates", []) if isinstance(data, dict) else data
    try:
        return pydantic.TypeAdapter(list[CandidateRecord]).validate_python(entries)
    except pydantic.ValidationError as e:
        raise ValidationError("candidates", str(e)) from e
