"""Mint and resolve signed session tokens and signup tickets."""

from datetime import datetime, timedelta
from typing import Any, Dict
import logging

import jwt
from pytz import UTC

from .. import domain
from ..exceptions import ExpiredToken, InvalidToken

logger = logging.getLogger(__name__)

SIGNUP_AUDIENCE = 'social-signup'


class SessionIssuer(object):
    """
    Issues JWTs carrying an organizer identifier.

    The signing secret and durations come from configuration and are passed
    in once, at construction.
    """

    def __init__(self, secret: str, duration: int = 86400,
                 ticket_duration: int = 900,
                 algorithm: str = 'HS256') -> None:
        if not secret:
            raise ValueError('A signing secret is required')
        self._secret = secret
        self._duration = duration
        self._ticket_duration = ticket_duration
        self._algorithm = algorithm

    def issue(self, organizer_id: str) -> domain.Session:
        """Sign a session token for ``organizer_id``."""
        issued = datetime.now(tz=UTC)
        expires = issued + timedelta(seconds=self._duration)
        token = self._encode({'organizerId': organizer_id,
                              'iat': issued, 'exp': expires})
        logger.debug('Issued session for %s', organizer_id)
        return domain.Session(token=token, organizer_id=organizer_id,
                              expires=expires)

    def resolve(self, token: str) -> str:
        """
        Verify a session token and get its organizer identifier.

        The caller must still confirm that the organizer exists.

        Raises
        ------
        :class:`ExpiredToken`
        :class:`InvalidToken`

        """
        data = self._decode(token)
        organizer_id = data.get('organizerId')
        if not organizer_id or not isinstance(organizer_id, str):
            raise InvalidToken('Token payload malformed')
        return organizer_id

    def issue_signup_ticket(self, profile: domain.ProviderProfile) -> str:
        """Sign proof that a provider verified this identity and email."""
        issued = datetime.now(tz=UTC)
        return self._encode({
            'aud': SIGNUP_AUDIENCE,
            'email': profile.email,
            'provider': profile.provider,
            'providerId': profile.provider_id,
            'iat': issued,
            'exp': issued + timedelta(seconds=self._ticket_duration)
        })

    def check_signup_ticket(self, ticket: str, email: str,
                            provider: domain.Provider,
                            provider_id: str) -> None:
        """Raise :class:`InvalidToken` unless the ticket matches."""
        data = self._decode(ticket, audience=SIGNUP_AUDIENCE)
        if data.get('email') != email \
                or data.get('provider') != str(provider) \
                or data.get('providerId') != provider_id:
            raise InvalidToken('Signup ticket does not match')

    def _encode(self, claims: Dict[str, Any]) -> str:
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def _decode(self, token: str, **kwargs: Any) -> Dict[str, Any]:
        if not token or not isinstance(token, str):
            raise InvalidToken('Token is missing')
        try:
            data: Dict[str, Any] = jwt.decode(token, self._secret,
                                              algorithms=[self._algorithm],
                                              **kwargs)
        except jwt.exceptions.ExpiredSignatureError as e:
            raise ExpiredToken('Token has expired') from e
        except jwt.exceptions.InvalidTokenError as e:
            raise InvalidToken('Not a valid token') from e
        return data
