from .api import (
    TIE,
    CandidateSummary,
    ErrorResponse,
    PairingOffer,
    VoteAccepted,
    VoteSubmission,
    VoteTelemetry,
)
from .vote import Vote

__all__ = [
    "TIE",
    "CandidateSummary",
    "ErrorResponse",
    "PairingOffer",
    "Vote",
    "VoteAccepted",
    "VoteSubmission",
    "VoteTelemetry",
]
