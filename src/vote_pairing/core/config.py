"""Configuration schemas and loading for vote pairing."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from vote_pairing.core.errors import MissingSecretError

SIGNING_SECRET_ENV = "VOTE_SIGNING_SECRET"
MIN_SECRET_LENGTH = 16


class PairingConfig(BaseModel):
    """Pair selection policy.

    Attributes:
        priority: Fairness ordering applied before sampling. Only
            "snapshot_asc" (earliest snapshot first) is supported.
        decay: Weight ratio between consecutive candidates in priority order.
            Candidate at position i gets weight decay**i.
        band_lower: Lower effort bound for the second pick, as a fraction of
            the first pick's effort.
        band_upper: Upper effort bound for the second pick.
        max_attempts: Banded attempts before the single unconstrained fallback.
    """

    priority: Literal["snapshot_asc"] = "snapshot_asc"
    decay: float = Field(default=0.95, gt=0.0, le=1.0)
    band_lower: float = Field(default=0.7, gt=0.0, le=1.0)
    band_upper: float = Field(default=1.3, ge=1.0)
    max_attempts: int = Field(default=25, ge=1)

    @model_validator(mode="after")
    def validate_band(self) -> PairingConfig:
        if self.band_lower > self.band_upper:
            msg = "band_lower must not exceed band_upper"
            raise ValueError(msg)
        return self


class VotingConfig(BaseModel):
    """Complete voting service configuration."""

    pairing: PairingConfig = Field(default_factory=PairingConfig)
    min_rationale_length: int = Field(default=10, ge=0)
    database_url: str = "duckdb:///votes.duckdb"
    candidates_path: str | None = None
    signing_secret: str | None = None
    seed: int | None = None

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if "://" not in v:
            msg = "database_url must be a SQLAlchemy URL (e.g. duckdb:///votes.duckdb)"
            raise ValueError(msg)
        return v

    def get_signing_secret(self) -> str:
        """Get ticket signing secret from config or environment."""
        secret = self.signing_secret or os.environ.get(SIGNING_SECRET_ENV)
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise MissingSecretError(MIN_SECRET_LENGTH)
        return secret


def load_config(path: str | Path) -> VotingConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated VotingConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    return VotingConfig.model_validate(data)
