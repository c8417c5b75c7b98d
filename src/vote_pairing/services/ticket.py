"""Stateless pairing tickets binding a candidate pair to a voter."""

from __future__ import annotations

import hashlib
import hmac
import json

from vote_pairing.core.config import MIN_SECRET_LENGTH
from vote_pairing.core.errors import MissingSecretError

TICKET_VERSION = "v1"


def ticket_message(event_a: str | int, event_b: str | int, voter_id: str | int) -> bytes:
    """Canonical bytes signed for a ticket.

    The order of event_a and event_b is kept as given, so a ticket only
    verifies for the order it was issued in. Ids are stringified first so
    7 and "7" encode identically.
    """
    payload = [TICKET_VERSION, str(event_a), str(event_b), str(voter_id)]
    return json.dumps(payload, separators=(",", ":")).encode()


class PairingTicketService:
    """Sign and verify pairing tickets with HMAC-SHA256.

    Nothing is stored: a ticket is valid exactly when recomputing the HMAC
    over the claimed (event_a, event_b, voter_id) reproduces it.
    """

    def __init__(self, secret: str | bytes) -> None:
        key = secret.encode() if isinstance(secret, str) else secret
        if len(key) < MIN_SECRET_LENGTH:
            raise MissingSecretError(MIN_SECRET_LENGTH)
        self._key = key

    def sign(self, event_a: str | int, event_b: str | int, voter_id: str | int) -> str:
        """Return the hex signature for this pair and voter."""
        message = ticket_message(event_a, event_b, voter_id)
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()

    def verify(
        self,
        signature: str | None,
        event_a: str | int,
        event_b: str | int,
        voter_id: str | int,
    ) -> bool:
        """Check a submitted signature against the claimed pair and voter.

        Comparison is constant-time. Malformed input is simply invalid.
        """
        if not isinstance(signature, str) or not signature.isascii():
            return False
        expected = self.sign(event_a, event_b, voter_id)
        return hmac.compare_digest(expected, signature)
