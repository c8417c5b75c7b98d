"""Custom exceptions for configuration and vote-request errors."""

from __future__ import annotations

from typing import Any


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class MissingSecretError(ConfigurationError):
    """Error when the ticket signing secret is missing or too short."""

    def __init__(self, min_length: int) -> None:
        super().__init__(
            f"Ticket signing secret required (at least {min_length} characters)",
            "Set VOTE_SIGNING_SECRET or signing_secret in config (avoid committing secrets to git).",
        )


class ValidationError(ConfigurationError):
    """Error when configuration validation fails."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid value for '{field}'",
            f"{reason}",
        )


class VotingError(Exception):
    """Base exception for recoverable per-request voting failures.

    Every subclass maps onto a structured client response via
    ``to_response``; none of them is fatal to the process.
    """

    code = "voting_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict[str, Any]:
        return {"error": self.message}


class InsufficientCandidatesError(VotingError):
    """Not enough eligible candidates to build a pair. Try again later."""

    code = "insufficient_candidates"

    def __init__(self) -> None:
        super().__init__("not enough candidates")


class InvalidTicketError(VotingError):
    """Submitted pairing ticket does not match the claimed pair and voter."""

    code = "invalid_ticket"

    def __init__(self) -> None:
        super().__init__("invalid signature")


class SubmissionError(VotingError):
    """User-correctable problem with a vote submission."""

    code = "validation_error"

    def __init__(self, field: str, reason: str, message: str | None = None) -> None:
        self.field = field
        self.reason = reason
        super().__init__(message or "validation failed")

    def to_response(self) -> dict[str, Any]:
        return {"error": self.message, "fields": {self.field: self.reason}}


class RationaleTooShortError(SubmissionError):
    """Rationale was provided but is shorter than the configured minimum."""

    def __init__(self, min_length: int) -> None:
        super().__init__(
            "rationale",
            f"must be at least {min_length} characters if provided",
            message="rationale too short",
        )
