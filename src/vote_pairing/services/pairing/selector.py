"""Effort-banded pair selection for head-to-head votes."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from vote_pairing.core.config import PairingConfig

from .candidates import MIN_PAIR_SIZE, Candidate
from .sampling import weighted_sample

logger = structlog.get_logger()


@dataclass(frozen=True)
class Paired:
    """A selected pair. `first` is always an uncompensated candidate."""

    first: Candidate
    second: Candidate
    attempts: int
    used_fallback: bool = False

    @property
    def candidates(self) -> tuple[Candidate, Candidate]:
        return self.first, self.second


@dataclass(frozen=True)
class Insufficient:
    """No valid pair exists for this voter right now."""

    reason: str


SelectionResult = Paired | Insufficient


def order_by_priority(candidates: Sequence[Candidate], priority: str) -> list[Candidate]:
    """Sort candidates into sampling priority order (stable)."""
    if priority == "snapshot_asc":
        return sorted(candidates, key=lambda c: c.snapshot_at)
    msg = f"Unknown pairing priority: {priority}"
    raise ValueError(msg)


class PairSelector:
    """Pick two comparable candidates with constrained weighted sampling.

    The first pick always comes from uncompensated candidates. The second
    is drawn from the whole pool but must have a different owner, a
    different non-empty dedupe key, and effort within
    [band_lower, band_upper] times the first pick's effort.

    A failed attempt throws away both picks and starts over with fresh
    exclusions. After `max_attempts` failures one unbanded fallback is
    tried so a sparse or skewed pool still produces some valid pair.
    """

    def __init__(self, config: PairingConfig | None = None) -> None:
        self.config = config or PairingConfig()

    def select(
        self,
        eligible: Sequence[Candidate],
        rng: random.Random | None = None,
        seed: int | None = None,
    ) -> SelectionResult:
        """Select a pair from already filtered candidates.

        Args:
            eligible: Output of filter_candidates.
            rng: Random source. Created from `seed` when omitted.
            seed: Seed for the random source when `rng` is omitted.

        Returns:
            Paired on success, Insufficient otherwise.
        """
        rng = rng or random.Random(seed)  # noqa: S311

        pool = order_by_priority(eligible, self.config.priority)
        unpaid = [c for c in pool if not c.is_compensated]

        if not unpaid or len(pool) < MIN_PAIR_SIZE:
            return Insufficient("need one uncompensated candidate and two overall")

        for attempt in range(1, self.config.max_attempts + 1):
            pair = self._try_banded(pool, unpaid, rng)
            if pair is not None:
                logger.debug("pair_selected", attempt=attempt, fallback=False)
                return Paired(pair[0], pair[1], attempts=attempt)

        logger.info("pairing_fallback", attempts=self.config.max_attempts, pool=len(pool))
        pair = self._try_unbanded(pool, unpaid, rng)
        if pair is None:
            return Insufficient("no pair with distinct owners and dedupe keys")
        return Paired(pair[0], pair[1], attempts=self.config.max_attempts + 1, used_fallback=True)

    def effort_band(self, effort: float) -> tuple[float, float]:
        """Acceptable effort range for an opponent of `effort`."""
        return effort * self.config.band_lower, effort * self.config.band_upper

    def _try_banded(
        self,
        pool: list[Candidate],
        unpaid: list[Candidate],
        rng: random.Random,
    ) -> tuple[Candidate, Candidate] | None:
        # Exclusions live only for this attempt, so every retry starts clean.
        first = weighted_sample(unpaid, self.config.decay, rng)
        if first is None:
            return None

        low, high = self.effort_band(first.effort)
        compatible = [
            c for c in pool if not c.conflicts_with(first) and low <= c.effort <= high
        ]
        second = weighted_sample(compatible, self.config.decay, rng)
        if second is None:
            return None
        return first, second

    def _try_unbanded(
        self,
        pool: list[Candidate],
        unpaid: list[Candidate],
        rng: random.Random,
    ) -> tuple[Candidate, Candidate] | None:
        first = weighted_sample(unpaid, self.config.decay, rng)
        if first is None:
            return None

        remaining = [c for c in pool if not c.conflicts_with(first)]
        second = weighted_sample(remaining, self.config.decay, rng)
        if second is None:
            return None
        return first, second
