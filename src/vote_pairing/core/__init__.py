"""Core configuration and errors for vote pairing."""

from vote_pairing.core.config import (
    SIGNING_SECRET_ENV,
    PairingConfig,
    VotingConfig,
    load_config,
)
from vote_pairing.core.errors import (
    ConfigurationError,
    InsufficientCandidatesError,
    InvalidTicketError,
    MissingSecretError,
    RationaleTooShortError,
    SubmissionError,
    ValidationError,
    VotingError,
)

__all__ = [
    "SIGNING_SECRET_ENV",
    "PairingConfig",
    "VotingConfig",
    "load_config",
    "ConfigurationError",
    "InsufficientCandidatesError",
    "InvalidTicketError",
    "MissingSecretError",
    "RationaleTooShortError",
    "SubmissionError",
    "ValidationError",
    "VotingError",
]
