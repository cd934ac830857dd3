"""Error kinds raised by the core.

Each kind carries the HTTP status an embedding web layer should answer with,
so callers can branch on the class instead of parsing messages.
"""

from __future__ import annotations


class HuddleError(Exception):
    """Base class for every error the core raises."""

    status_code: int = 500


class ValidationError(HuddleError):
    """Bad input: team count below 2, unknown mode, malformed score, short headcount."""

    status_code = 400


class NotFoundError(HuddleError):
    """A referenced game, round, quarter or pairing does not exist."""

    status_code = 404


class StaleLedgerError(HuddleError):
    """A ledger write was based on a revision that is no longer current."""

    status_code = 409


class CorruptStateError(HuddleError):
    """Stored ledger or legacy team-set content could not be decoded.

    Never repaired automatically: replacing it with an empty ledger would
    silently drop history.
    """

    status_code = 500
