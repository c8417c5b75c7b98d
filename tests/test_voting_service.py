"""Tests for the voting service request and submit paths."""

import random

import pytest
from conftest import TEST_SECRET, make_candidate

from vote_pairing.models import ErrorResponse, PairingOffer, VoteAccepted
from vote_pairing.services.sources import InMemoryCandidateSource
from vote_pairing.services.storage import VoteStore
from vote_pairing.services.ticket import PairingTicketService
from vote_pairing.services.voting import VotingService


@pytest.fixture
async def store(voting_config):
    store = VoteStore(voting_config)
    yield store
    await store.close()


@pytest.fixture
def service(voting_config, store, scenario_candidates) -> VotingService:
    source = InMemoryCandidateSource(scenario_candidates)
    return VotingService(voting_config, source, store.votes)


def _submission(offer: PairingOffer, **overrides) -> dict:
    a, b = offer.candidates
    data = {
        "event_a_id": offer.event_a_id,
        "event_b_id": offer.event_b_id,
        "candidate_a_id": a.id,
        "candidate_b_id": b.id,
        "signature": offer.signature,
        "winner": a.id,
        "rationale": "Cleaner demo and a clearer README.",
    }
    data.update(overrides)
    return data


class TestRequestPairing:
    """Tests for VotingService.request_pairing."""

    async def test_offer_contains_comparable_pair(self, service):
        """The only in-band pair is offered with a valid ticket."""
        offer = await service.request_pairing("V", rng=random.Random(1))

        assert isinstance(offer, PairingOffer)
        assert {c.id for c in offer.candidates} == {"1", "2"}
        assert [c.reference_event_id for c in offer.candidates] == [
            offer.event_a_id,
            offer.event_b_id,
        ]
        assert service.tickets.verify(offer.signature, offer.event_a_id, offer.event_b_id, "V")
        assert offer.submitted_votes_count == 0

    async def test_summary_fields(self, service):
        """Summaries expose title and effort as time spent."""
        offer = await service.request_pairing("V", rng=random.Random(1))

        assert isinstance(offer, PairingOffer)
        summary = {c.id: c for c in offer.candidates}["1"]
        assert summary.title == "Project 1"
        assert summary.time_spent == 100
        assert summary.used_ai is False

    async def test_single_candidate_is_insufficient(self, voting_config, store):
        """One eligible candidate means voting is temporarily unavailable."""
        source = InMemoryCandidateSource([make_candidate("1"), make_candidate("2", owner="V")])
        service = VotingService(voting_config, source, store.votes)

        result = await service.request_pairing("V")

        assert isinstance(result, ErrorResponse)
        assert result.error == "not enough candidates"

    async def test_all_paid_is_insufficient(self, voting_config, store):
        """Selection without an uncompensated candidate fails softly."""
        source = InMemoryCandidateSource(
            [make_candidate("1", paid=True), make_candidate("2", paid=True)]
        )
        service = VotingService(voting_config, source, store.votes)

        result = await service.request_pairing("V")

        assert isinstance(result, ErrorResponse)
        assert result.error == "not enough candidates"

    async def test_history_excludes_judged_pair(self, service):
        """After voting on 1 vs 2 nothing comparable remains."""
        offer = await service.request_pairing("V", rng=random.Random(1))
        assert isinstance(offer, PairingOffer)
        assert isinstance(await service.submit_vote("V", _submission(offer)), VoteAccepted)

        result = await service.request_pairing("V", rng=random.Random(1))

        assert isinstance(result, ErrorResponse)
        assert result.error == "not enough candidates"

    async def test_vote_count_reported(self, voting_config, store):
        """Offers carry the voter's submitted vote count."""
        candidates = [make_candidate(str(i), effort=100, day=i) for i in range(6)]
        service = VotingService(voting_config, InMemoryCandidateSource(candidates), store.votes)

        offer = await service.request_pairing("V", rng=random.Random(5))
        assert isinstance(offer, PairingOffer)
        await service.submit_vote("V", _submission(offer))

        second = await service.request_pairing("V", rng=random.Random(5))
        assert isinstance(second, PairingOffer)
        assert second.submitted_votes_count == 1

    async def test_configured_seed_gives_reproducible_sequence(self, voting_config, store):
        """A seeded service replays the same sequence of pairs, not one pair."""
        config = voting_config.model_copy(update={"seed": 7})
        candidates = [make_candidate(str(i), effort=100, day=i) for i in range(8)]

        async def draw_pairs() -> list[tuple[str, str]]:
            service = VotingService(config, InMemoryCandidateSource(candidates), store.votes)
            pairs = []
            for _ in range(12):
                offer = await service.request_pairing("V")
                assert isinstance(offer, PairingOffer)
                pairs.append((offer.event_a_id, offer.event_b_id))
            return pairs

        first_run = await draw_pairs()
        assert await draw_pairs() == first_run
        assert len(set(first_run)) > 1


class TestSubmitVote:
    """Tests for VotingService.submit_vote."""

    @pytest.fixture
    async def offer(self, service) -> PairingOffer:
        offer = await service.request_pairing("V", rng=random.Random(2))
        assert isinstance(offer, PairingOffer)
        return offer

    async def test_valid_vote_is_recorded(self, service, store, offer):
        """A verified vote is persisted with its winner and telemetry."""
        payload = _submission(
            offer,
            telemetry={"candidate_a_demo_opened": True, "time_spent_voting_ms": 4200},
        )
        result = await service.submit_vote("V", payload)

        assert isinstance(result, VoteAccepted)
        votes = await store.votes.get_votes_for_voter("V")
        assert len(votes) == 1
        assert votes[0].id == result.vote_id
        assert votes[0].winner_candidate_id == offer.candidates[0].id
        assert votes[0].candidate_a_demo_opened is True
        assert votes[0].time_spent_voting_ms == 4200

    async def test_tie_has_no_winner(self, service, store, offer):
        """A tie is stored without a winning candidate."""
        result = await service.submit_vote("V", _submission(offer, winner="tie"))

        assert isinstance(result, VoteAccepted)
        votes = await store.votes.get_votes_for_voter("V")
        assert votes[0].winner_candidate_id is None

    async def test_rationale_optional(self, service, offer):
        """Omitting the rationale is allowed."""
        result = await service.submit_vote("V", _submission(offer, rationale=None))
        assert isinstance(result, VoteAccepted)

    async def test_short_rationale_rejected(self, service, store, offer):
        """A provided rationale must meet the minimum length."""
        result = await service.submit_vote("V", _submission(offer, rationale="meh"))

        assert isinstance(result, ErrorResponse)
        assert result.error == "rationale too short"
        assert result.fields is not None
        assert "rationale" in result.fields
        assert await store.votes.count_votes("V") == 0

    async def test_rationale_length_boundary(self, service, offer):
        """Nine characters are too short, ten are enough."""
        result = await service.submit_vote("V", _submission(offer, rationale="x" * 9))
        assert isinstance(result, ErrorResponse)
        assert result.error == "rationale too short"

        result = await service.submit_vote("V", _submission(offer, rationale="x" * 10))
        assert isinstance(result, VoteAccepted)

    async def test_rationale_length_counts_text_as_given(self, service, offer):
        """Surrounding spaces count toward the minimum."""
        result = await service.submit_vote("V", _submission(offer, rationale="  ok ok!  "))
        assert isinstance(result, VoteAccepted)

    async def test_signature_for_other_voter_rejected(self, service, store, offer):
        """A ticket issued to V cannot be used by W."""
        result = await service.submit_vote("W", _submission(offer))

        assert isinstance(result, ErrorResponse)
        assert result.error == "invalid signature"
        assert await store.votes.count_votes("W") == 0
        assert await store.votes.count_votes("V") == 0

    async def test_swapped_events_rejected(self, service, store, offer):
        """Order of the events is part of the ticket."""
        a, b = offer.candidates
        payload = _submission(
            offer,
            event_a_id=offer.event_b_id,
            event_b_id=offer.event_a_id,
            candidate_a_id=b.id,
            candidate_b_id=a.id,
        )
        result = await service.submit_vote("V", payload)

        assert isinstance(result, ErrorResponse)
        assert result.error == "invalid signature"
        assert await store.votes.count_votes("V") == 0

    async def test_forged_signature_rejected(self, service, offer):
        """A signature made with another key is refused."""
        forger = PairingTicketService("not-the-server-secret-at-all")
        forged = forger.sign(offer.event_a_id, offer.event_b_id, "V")

        result = await service.submit_vote("V", _submission(offer, signature=forged))

        assert isinstance(result, ErrorResponse)
        assert result.error == "invalid signature"

    async def test_candidate_swap_rejected(self, service, store, offer):
        """Candidates must be the ones pinned to the signed events."""
        payload = _submission(offer, candidate_a_id="3", winner="3")
        result = await service.submit_vote("V", payload)

        assert isinstance(result, ErrorResponse)
        assert result.error == "invalid signature"
        assert await store.votes.count_votes("V") == 0

    async def test_unknown_candidate_rejected(self, service, store, offer):
        """A correctly signed pair naming an unknown candidate is refused."""
        payload = _submission(offer, candidate_a_id="999", winner="999")
        result = await service.submit_vote("V", payload)

        assert isinstance(result, ErrorResponse)
        assert result.error == "invalid signature"
        assert await store.votes.count_votes("V") == 0

    async def test_ticket_survives_reship(self, voting_config, store):
        """A ticket for an older snapshot still verifies after the project reships."""
        first = [make_candidate("1", event="11"), make_candidate("2", event="12")]
        service = VotingService(voting_config, InMemoryCandidateSource(first), store.votes)
        offer = await service.request_pairing("V", rng=random.Random(0))
        assert isinstance(offer, PairingOffer)

        reshipped = [make_candidate("1", event="21", day=2), first[1]]
        source = InMemoryCandidateSource(reshipped, superseded=first)
        later = VotingService(voting_config, source, store.votes)

        result = await later.submit_vote("V", _submission(offer, winner="tie"))
        assert isinstance(result, VoteAccepted)

    async def test_unknown_winner_rejected(self, service, offer):
        """The winner must be one of the pair or a tie."""
        result = await service.submit_vote("V", _submission(offer, winner="3"))

        assert isinstance(result, ErrorResponse)
        assert result.error == "validation failed"
        assert result.fields == {"winner": "must be 'tie' or one of the paired candidates"}

    async def test_malformed_payload_reports_fields(self, service, offer):
        """Structural problems come back as field errors."""
        payload = _submission(offer)
        del payload["signature"]
        payload["telemetry"] = {"time_spent_voting_ms": -1}

        result = await service.submit_vote("V", payload)

        assert isinstance(result, ErrorResponse)
        assert result.error == "validation failed"
        assert result.fields is not None
        assert "signature" in result.fields
        assert "telemetry.time_spent_voting_ms" in result.fields

    async def test_integer_ids_accepted(self, voting_config, store):
        """Numeric ids from clients match string ids in tickets."""
        candidates = [
            make_candidate("1", effort=100, event="11"),
            make_candidate("2", effort=100, event="12"),
        ]
        service = VotingService(voting_config, InMemoryCandidateSource(candidates), store.votes)
        offer = await service.request_pairing("V", rng=random.Random(0))
        assert isinstance(offer, PairingOffer)

        a, b = offer.candidates
        payload = _submission(
            offer,
            event_a_id=int(offer.event_a_id),
            event_b_id=int(offer.event_b_id),
            candidate_a_id=int(a.id),
            candidate_b_id=int(b.id),
            winner="tie",
        )
        result = await service.submit_vote("V", payload)

        assert isinstance(result, VoteAccepted)


async def test_service_requires_secret(store, monkeypatch):
    """Without a secret the service cannot be built."""
    from vote_pairing.core.config import SIGNING_SECRET_ENV, VotingConfig
    from vote_pairing.core.errors import MissingSecretError

    monkeypatch.delenv(SIGNING_SECRET_ENV, raising=False)
    with pytest.raises(MissingSecretError):
        VotingService(VotingConfig(), InMemoryCandidateSource([]), store.votes)


async def test_explicit_ticket_service_used(voting_config, store):
    """A provided ticket service takes precedence over the config secret."""
    tickets = PairingTicketService(TEST_SECRET * 2)
    service = VotingService(voting_config, InMemoryCandidateSource([]), store.votes, tickets)
    assert service.tickets is tickets
