#!/usr/bin/env python
"""Simulate pair selection over a synthetic candidate pool.

Reports how often the banded path succeeds, how often the fallback kicks in,
and how exposure is spread across priority positions. Useful when tuning
decay, band bounds and attempt cap.
"""

import random
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from vote_pairing.core.config import PairingConfig
from vote_pairing.services.pairing import (
    Candidate,
    Insufficient,
    PairSelector,
    order_by_priority,
)

console = Console()
app = typer.Typer(add_completion=False)


def build_pool(size: int, owners: int, paid_ratio: float, rng: random.Random) -> list[Candidate]:
    """Random pool with log-normal effort, shared owners and some paid snapshots."""
    start = datetime(2024, 6, 1, tzinfo=UTC)
    return [
        Candidate(
            id=f"p{i}",
            owner_id=f"u{rng.randrange(owners)}",
            reference_event_id=f"s{i}",
            effort=rng.lognormvariate(9.0, 0.8),
            snapshot_at=start + timedelta(hours=rng.randrange(24 * 60)),
            dedupe_key=f"repo-{i}",
            is_compensated=rng.random() < paid_ratio,
        )
        for i in range(size)
    ]


@app.command()
def main(
    pool_size: Annotated[int, typer.Option("--pool", help="Number of candidates")] = 60,
    owners: Annotated[int, typer.Option("--owners", help="Distinct owners in the pool")] = 40,
    paid_ratio: Annotated[
        float, typer.Option("--paid-ratio", help="Share of already compensated snapshots")
    ] = 0.3,
    draws: Annotated[int, typer.Option("--draws", help="Pairs to select")] = 5000,
    decay: Annotated[float, typer.Option("--decay", help="Priority weight decay")] = 0.95,
    max_attempts: Annotated[
        int, typer.Option("--max-attempts", help="Banded attempts before fallback")
    ] = 25,
    seed: Annotated[int, typer.Option("--seed", help="Random seed")] = 42,
) -> None:
    """Run the simulation and print a summary."""
    rng = random.Random(seed)  # noqa: S311
    pool = build_pool(pool_size, owners, paid_ratio, rng)
    config = PairingConfig(decay=decay, max_attempts=max_attempts)
    selector = PairSelector(config)

    position = {c.id: i for i, c in enumerate(order_by_priority(pool, config.priority))}
    exposure: Counter[int] = Counter()
    outcomes: Counter[str] = Counter()

    for _ in range(draws):
        result = selector.select(pool, rng=rng)
        if isinstance(result, Insufficient):
            outcomes["insufficient"] += 1
            continue
        outcomes["fallback" if result.used_fallback else "banded"] += 1
        for candidate in result.candidates:
            exposure[position[candidate.id] // 10] += 1

    summary = Table(title="Outcomes")
    summary.add_column("Outcome")
    summary.add_column("Share", justify="right")
    for outcome in ("banded", "fallback", "insufficient"):
        summary.add_row(outcome, f"{outcomes[outcome] / draws:.1%}")
    console.print(summary)

    spread = Table(title="Exposure by priority position")
    spread.add_column("Positions")
    spread.add_column("Appearances", justify="right")
    for bucket in sorted(exposure):
        spread.add_row(f"{bucket * 10}-{bucket * 10 + 9}", str(exposure[bucket]))
    console.print(spread)


if __name__ == "__main__":
    app()
