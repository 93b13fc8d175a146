"""Exception hierarchy for oracle and store failures."""

from typing import Optional


class AccessSyncError(Exception):
    """Base class for all access-sync errors."""


class OracleError(AccessSyncError):
    """A batch query against the oracle failed. Fatal to the run."""


class TransientOracleError(OracleError):
    """Rate limit, server-side or transport failure. Safe to retry."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FatalOracleError(OracleError):
    """Any other oracle failure (bad request, auth, ...). Never retried."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyReplyError(OracleError):
    """The oracle returned no content."""


class MalformedJsonError(OracleError):
    """The oracle reply could not be parsed as JSON."""


class UnexpectedShapeError(OracleError):
    """The parsed reply holds no list of records."""


class StoreAccessError(AccessSyncError):
    """A read or write against the store failed for one key.

    Raised by store clients; the reconciler logs it and moves on.
    """

    def __init__(
        self,
        message: str,
        operation: str = "",
        subject: Optional[str] = None,
        scope: Optional[str] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.subject = subject
        self.scope = scope
