"""
Verification of opaque provider tokens.

Each :class:`ProviderVerifier` exchanges a bearer token issued by its
provider for a canonical profile (see :data:`domain.ProviderProfile`) by
calling the provider's own API. Calls carry a bounded timeout and are never
retried: a timeout or upstream failure is surfaced immediately as
:class:`.UpstreamProviderUnavailable` so that the person at the browser can
try again.

The same verifiers drive the browser redirect flow, by building the
provider's authorization URL and exchanging the returned code for a token.
"""

from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode
import logging

import requests

from ... import domain
from ...exceptions import InvalidProviderToken, UpstreamProviderUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
"""Seconds to wait for a provider before giving up."""


class UnsupportedProvider(ValueError):
    """No verifier exists for the requested provider name."""


class ProviderVerifier(object):
    """Base class for provider token verification."""

    provider: domain.Provider
    authorize_endpoint: str
    token_endpoint: str
    scope: str

    def __init__(self, client_id: str = '', client_secret: str = '',
                 callback_url: str = '', timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.timeout = timeout
        if session is None:
            session = requests.Session()
        self._session = session

    def verify(self, token: str) -> domain.ProviderProfile:
        """Exchange a provider token for a verified profile."""
        if not token or not isinstance(token, str):
            raise InvalidProviderToken('Invalid token format')
        return self._verify(token)

    def _verify(self, token: str) -> domain.ProviderProfile:
        raise NotImplementedError('Implemented in a child class')

    def authorization_url(self, state: str) -> str:
        """Build the provider URL that starts the redirect flow."""
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.callback_url,
            'response_type': 'code',
            'scope': self.scope,
            'state': state
        }
        return f'{self.authorize_endpoint}?{urlencode(params)}'

    def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token."""
        if not code:
            raise InvalidProviderToken('Authorization code is missing')
        response = self._request('POST', self.token_endpoint, data={
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'code': code,
            'redirect_uri': self.callback_url,
            'grant_type': 'authorization_code'
        }, headers={'Accept': 'application/json'})
        if 400 <= response.status_code < 500:
            raise InvalidProviderToken(f'{self.provider} rejected the code')
        data = self._json(response)
        token = data.get('access_token')
        if 'error' in data or not token:
            logger.debug('Code exchange failed: %s', data.get('error'))
            raise InvalidProviderToken(f'{self.provider} rejected the code')
        return str(token)

    def _request(self, method: str, url: str,
                 **kwargs: Any) -> requests.Response:
        """Call the provider with a timeout; no retries."""
        try:
            response = self._session.request(method, url,
                                             timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error('%s timed out: %s', self.provider, url)
            raise UpstreamProviderUnavailable(
                f'{self.provider} did not respond in time'
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error('%s request failed: %s', self.provider, e)
            raise UpstreamProviderUnavailable(
                f'Could not reach {self.provider}'
            ) from e
        if response.status_code >= 500:
            logger.error('%s returned %i for %s', self.provider,
                         response.status_code, url)
            raise UpstreamProviderUnavailable(
                f'{self.provider} is unavailable'
            )
        return response

    def _json(self, response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamProviderUnavailable(
                f'{self.provider} returned a malformed response'
            ) from e
        if not isinstance(data, dict):
            raise UpstreamProviderUnavailable(
                f'{self.provider} returned a malformed response'
            )
        return data


from .google import GoogleVerifier   # noqa: E402
from .github import GitHubVerifier   # noqa: E402

VERIFIERS = {
    domain.Provider.GOOGLE: GoogleVerifier,
    domain.Provider.GITHUB: GitHubVerifier,
}


def parse_provider(name: Any) -> domain.Provider:
    """Get the :class:`domain.Provider` named by ``name``."""
    try:
        return domain.Provider(name)
    except ValueError as e:
        raise UnsupportedProvider(f'Unsupported provider: {name}') from e


def get_verifier(provider: Any, config: Mapping[str, Any]) \
        -> ProviderVerifier:
    """Build the verifier for ``provider`` from application config."""
    provider = parse_provider(provider)
    prefix = provider.name
    return VERIFIERS[provider](
        client_id=config.get(f'{prefix}_CLIENT_ID', ''),
        client_secret=config.get(f'{prefix}_CLIENT_SECRET', ''),
        callback_url=config.get(f'{prefix}_CALLBACK_URL', ''),
        timeout=float(config.get('PROVIDER_TIMEOUT', DEFAULT_TIMEOUT))
    )


def build_verifiers(config: Mapping[str, Any]) \
        -> Dict[domain.Provider, ProviderVerifier]:
    """Build one verifier per supported provider."""
    return {provider: get_verifier(provider, config)
            for provider in VERIFIERS}
