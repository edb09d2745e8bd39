"""
Error taxonomy for the matching workflow.

Every error raised by the core derives from ``AuraError`` so the session
facade and the HTTP layer can turn any of them into a user-facing notice.
"""


class AuraError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class UnauthenticatedError(AuraError):
    """No identity is bound to the current session."""

    def __init__(self, message: str = "Please connect wallet first"):
        super().__init__(message)


class NotAuthorizedError(AuraError):
    """The caller's identity is not allowed to perform this transition."""


class NotFoundError(AuraError):
    """A match record (or the index) is absent from the ledger."""

    def __init__(self, match_id: str):
        super().__init__(f"Match not found: {match_id}")
        self.match_id = match_id


class DecodeError(AuraError):
    """An encrypted token is structurally malformed."""


class RecordFormatError(AuraError):
    """Stored record bytes exist but do not parse into a match record."""

    def __init__(self, match_id: str, kind: str, detail: str = ""):
        super().__init__(f"Match {match_id} is unreadable ({kind}) {detail}".rstrip())
        self.match_id = match_id
        self.kind = kind


class InvalidTransitionError(AuraError):
    """A status transition was attempted from a state that does not allow it."""

    def __init__(self, match_id: str, from_status: str, to_status: str):
        super().__init__(
            f"Invalid transition for match {match_id}: {from_status} -> {to_status}"
        )
        self.match_id = match_id
        self.from_status = from_status
        self.to_status = to_status


class InvalidProposalError(AuraError):
    """A proposal was submitted without a usable interest selection."""


class SignatureRejectedError(AuraError):
    """Raised by a signer when the user declines to sign."""

    def __init__(self, message: str = "user rejected signature request"):
        super().__init__(message)


class DecryptionAbortedError(AuraError):
    """The signature round trip was declined, timed out, or failed."""
