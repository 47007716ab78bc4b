"""Verify GitHub OAuth access tokens."""

from typing import Any, Dict, List
import logging

from ... import domain
from ...exceptions import InvalidProviderToken, NoVerifiedEmail, \
    UpstreamProviderUnavailable
from . import ProviderVerifier

logger = logging.getLogger(__name__)

USER_URL = 'https://api.github.com/user'
EMAILS_URL = 'https://api.github.com/user/emails'


class GitHubVerifier(ProviderVerifier):
    """
    Resolves GitHub access tokens through the user-profile endpoint.

    If the profile has no public email, the private email list is consulted
    and the primary, verified address is used.
    """

    provider = domain.Provider.GITHUB
    authorize_endpoint = 'https://github.com/login/oauth/authorize'
    token_endpoint = 'https://github.com/login/oauth/access_token'
    scope = 'read:user user:email'

    def _verify(self, token: str) -> domain.GitHubProfile:
        headers = {'Authorization': f'Bearer {token}',
                   'Accept': 'application/vnd.github+json'}
        response = self._request('GET', USER_URL, headers=headers)
        if 400 <= response.status_code < 500:
            logger.debug('GitHub rejected token: %i', response.status_code)
            raise InvalidProviderToken('Invalid GitHub token')

        data = self._json(response)
        if data.get('id') is None:
            raise InvalidProviderToken('Invalid GitHub token')
        email = data.get('email') or self._primary_email(headers)
        return domain.GitHubProfile(
            email=email,
            provider_id=str(data['id']),
            username=data.get('login') or str(data['id']),
            picture=data.get('avatar_url')
        )

    def _primary_email(self, headers: Dict[str, str]) -> str:
        """Get the primary, verified address from the private email list."""
        response = self._request('GET', EMAILS_URL, headers=headers)
        if response.status_code == 401:
            raise InvalidProviderToken('Invalid GitHub token')
        if 400 <= response.status_code < 500:
            # The token was not granted the user:email scope.
            raise NoVerifiedEmail('No verified email found in GitHub account')
        try:
            emails: List[Dict[str, Any]] = response.json()
        except ValueError as e:
            raise UpstreamProviderUnavailable(
                'github returned a malformed response'
            ) from e
        if not isinstance(emails, list) \
                or not all(isinstance(entry, dict) for entry in emails):
            raise UpstreamProviderUnavailable(
                'github returned a malformed response'
            )
        for entry in emails:
            if entry.get('primary') and entry.get('verified') \
                    and entry.get('email'):
                return str(entry['email'])
        raise NoVerifiedEmail('No verified email found in GitHub account')
