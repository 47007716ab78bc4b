"""
Exceptions raised by the organizer identity core.

Every subclass of :class:`IdentityError` is a deliberate business outcome
that must reach the caller unmodified. ``status_code`` is only consulted by
the HTTP layer.
"""


class IdentityError(RuntimeError):
    """Base class for business outcomes of identity operations."""

    status_code = 400


class InvalidCredentials(IdentityError):
    """Email/password combination is not valid."""

    status_code = 401


class EmailAlreadyRegistered(IdentityError):
    """An organizer with this email address already exists."""

    status_code = 409


class InvalidProviderToken(IdentityError):
    """The provider rejected the token, or returned an unusable profile."""

    status_code = 401


class UpstreamProviderUnavailable(IdentityError):
    """The provider could not be reached, timed out, or failed (5xx)."""

    status_code = 502


class NoVerifiedEmail(IdentityError):
    """The provider account has no primary, verified email address."""

    status_code = 401


class ProviderAlreadyLinked(IdentityError):
    """The organizer already has this provider linked."""

    status_code = 409


class ProviderLinkedElsewhere(IdentityError):
    """The provider identity belongs to a different organizer."""

    status_code = 409


class ProviderNotLinked(IdentityError):
    """The organizer does not have this provider linked."""


class LastAuthMethodViolation(IdentityError):
    """Removing the provider would leave the account without credentials."""


class AccountNotFound(IdentityError):
    """No organizer exists with the requested identifier."""

    status_code = 404


class Conflict(IdentityError):
    """The account came into existence while a signup was in flight."""

    status_code = 409


class InvalidToken(IdentityError):
    """A session token or signup ticket is malformed, forged, or stale."""

    status_code = 401


class ExpiredToken(InvalidToken):
    """A session token or signup ticket has expired."""


class Unavailable(RuntimeError):
    """The credential store is temporarily unavailable."""
