"""Verify Google OAuth access tokens."""

import logging

from ... import domain
from ...exceptions import InvalidProviderToken
from . import ProviderVerifier

logger = logging.getLogger(__name__)

TOKENINFO_URL = 'https://www.googleapis.com/oauth2/v1/tokeninfo'


class GoogleVerifier(ProviderVerifier):
    """Resolves Google access tokens through the token-info endpoint."""

    provider = domain.Provider.GOOGLE
    authorize_endpoint = 'https://accounts.google.com/o/oauth2/v2/auth'
    token_endpoint = 'https://oauth2.googleapis.com/token'
    scope = 'openid email profile'

    def _verify(self, token: str) -> domain.GoogleProfile:
        response = self._request('GET', TOKENINFO_URL,
                                 params={'access_token': token})
        if 400 <= response.status_code < 500:
            logger.debug('Google rejected token: %i', response.status_code)
            raise InvalidProviderToken('Invalid Google token')

        data = self._json(response)
        email = data.get('email')
        subject = data.get('user_id') or data.get('sub')
        if not email or not subject:
            raise InvalidProviderToken('Invalid Google token')
        return domain.GoogleProfile(email=email, provider_id=str(subject),
                                    name=data.get('name'),
                                    picture=data.get('picture'))
