"""Voting service: hand out signed pairs and record verified votes."""

from __future__ import annotations

import random
from typing import Any

import pydantic
import structlog

from vote_pairing.core.config import VotingConfig
from vote_pairing.core.errors import (
    InsufficientCandidatesError,
    InvalidTicketError,
    RationaleTooShortError,
    SubmissionError,
    VotingError,
)
from vote_pairing.models import (
    TIE,
    CandidateSummary,
    ErrorResponse,
    PairingOffer,
    Vote,
    VoteAccepted,
    VoteSubmission,
)
from vote_pairing.services.pairing import (
    Candidate,
    Insufficient,
    PairSelector,
    Paired,
    VoterHistory,
    filter_candidates,
)
from vote_pairing.services.sources import CandidateSource
from vote_pairing.services.storage import VoteRepository
from vote_pairing.services.ticket import PairingTicketService

logger = structlog.get_logger()


def summarize(candidate: Candidate) -> CandidateSummary:
    """Client-facing view of one candidate."""
    return CandidateSummary(
        id=candidate.id,
        reference_event_id=candidate.reference_event_id,
        title=candidate.title,
        demo_link=candidate.demo_link,
        repo_link=candidate.dedupe_key,
        used_ai=bool(candidate.used_ai),
        time_spent=candidate.effort,
    )


def _field_errors(error: pydantic.ValidationError) -> dict[str, str]:
    return {".".join(str(part) for part in e["loc"]) or "payload": e["msg"] for e in error.errors()}


class VotingService:
    """Orchestrates filtering, pair selection, ticket signing and recording.

    Both public methods return structured results; request-time failures
    never propagate as exceptions.
    """

    def __init__(
        self,
        config: VotingConfig,
        source: CandidateSource,
        votes: VoteRepository,
        tickets: PairingTicketService | None = None,
    ) -> None:
        """Initialize voting service.

        Args:
            config: Voting configuration.
            source: Upstream candidate listing.
            votes: Vote persistence and voter history.
            tickets: Ticket signer. Built from the configured secret if omitted.
        """
        self.config = config
        self.source = source
        self.votes = votes
        self.tickets = tickets or PairingTicketService(config.get_signing_secret())
        self.selector = PairSelector(config.pairing)
        # Seeded once; successive requests continue the same stream.
        self._rng = random.Random(config.seed) if config.seed is not None else None  # noqa: S311

    async def request_pairing(
        self, voter_id: str, rng: random.Random | None = None
    ) -> PairingOffer | ErrorResponse:
        """Pick a pair for this voter and sign a ticket for it."""
        try:
            paired = await self._select_pair(voter_id, rng)
        except VotingError as e:
            logger.info("pairing_unavailable", voter=voter_id, code=e.code)
            return ErrorResponse(**e.to_response())

        first, second = paired.candidates
        signature = self.tickets.sign(
            first.reference_event_id, second.reference_event_id, voter_id
        )
        submitted = await self.votes.count_votes(voter_id)

        logger.info(
            "pairing_issued",
            voter=voter_id,
            event_a=first.reference_event_id,
            event_b=second.reference_event_id,
            attempts=paired.attempts,
            fallback=paired.used_fallback,
        )
        return PairingOffer(
            event_a_id=first.reference_event_id,
            event_b_id=second.reference_event_id,
            candidates=[summarize(first), summarize(second)],
            signature=signature,
            submitted_votes_count=submitted,
        )

    async def submit_vote(
        self, voter_id: str, payload: VoteSubmission | dict[str, Any]
    ) -> VoteAccepted | ErrorResponse:
        """Validate, verify and persist a vote. Nothing is written on failure."""
        if not isinstance(payload, VoteSubmission):
            try:
                payload = VoteSubmission.model_validate(payload)
            except pydantic.ValidationError as e:
                return ErrorResponse(error="validation failed", fields=_field_errors(e))

        try:
            self._validate_submission(payload)
            self._verify_ticket(voter_id, payload)
            await self._verify_pair(voter_id, payload)
        except VotingError as e:
            return ErrorResponse(**e.to_response())

        vote = Vote(
            voter_id=voter_id,
            event_a_id=payload.event_a_id,
            event_b_id=payload.event_b_id,
            candidate_a_id=payload.candidate_a_id,
            candidate_b_id=payload.candidate_b_id,
            winner_candidate_id=payload.winner_candidate_id,
            rationale=payload.rationale or "",
            **payload.telemetry.model_dump(),
        )
        saved = await self.votes.save_vote(vote)
        logger.info("vote_recorded", voter=voter_id, vote_id=saved.id, tie=payload.is_tie)
        return VoteAccepted(vote_id=saved.id)

    async def _select_pair(self, voter_id: str, rng: random.Random | None) -> Paired:
        candidates = await self.source.list_candidates(voter_id)
        history = VoterHistory.from_event_ids(await self.votes.get_judged_event_ids(voter_id))

        eligible = filter_candidates(candidates, voter_id, history)
        if not eligible:
            raise InsufficientCandidatesError()

        result = self.selector.select(eligible, rng=rng or self._rng)
        if isinstance(result, Insufficient):
            logger.debug("selection_insufficient", voter=voter_id, reason=result.reason)
            raise InsufficientCandidatesError()
        return result

    def _validate_submission(self, payload: VoteSubmission) -> None:
        minimum = self.config.min_rationale_length
        if payload.rationale and len(payload.rationale) < minimum:
            raise RationaleTooShortError(minimum)

        if payload.winner not in {TIE, payload.candidate_a_id, payload.candidate_b_id}:
            raise SubmissionError("winner", "must be 'tie' or one of the paired candidates")

    def _verify_ticket(self, voter_id: str, payload: VoteSubmission) -> None:
        valid = self.tickets.verify(
            payload.signature, payload.event_a_id, payload.event_b_id, voter_id
        )
        if not valid:
            logger.warning(
                "invalid_vote_ticket",
                voter=voter_id,
                event_a=payload.event_a_id,
                event_b=payload.event_b_id,
            )
            raise InvalidTicketError()

    async def _verify_pair(self, voter_id: str, payload: VoteSubmission) -> None:
        """The claimed candidates must be the ones pinned to the signed events."""
        for event_id, candidate_id in (
            (payload.event_a_id, payload.candidate_a_id),
            (payload.event_b_id, payload.candidate_b_id),
        ):
            candidate = await self.source.get_candidate_for_event(event_id)
            if candidate is None or candidate.id != candidate_id:
                logger.warning("vote_pair_mismatch", voter=voter_id, event_id=event_id)
                raise InvalidTicketError()
