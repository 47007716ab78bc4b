"""
The browser redirect OAuth flow.

A redirect can arrive without the person deliberately acting in our UI, so
this flow never creates an account on its own. An unseen provider identity
produces a :class:`domain.SignupRequired` payload and nothing is written;
the account is only created by an explicit
:meth:`OAuthOrchestrator.social_signup` call.

States::

    AnonymousVisitor --begin--> ProviderRedirect
    ProviderRedirect --known identity--> Authenticated
    ProviderRedirect --unseen identity--> PendingSignup
    PendingSignup --social_signup, still unseen--> Authenticated
    PendingSignup --social_signup, now known--> Conflict
"""

from typing import Any, Dict, Mapping, Optional, Tuple, Union
import logging
import secrets

from .. import domain
from ..exceptions import Conflict, EmailAlreadyRegistered, \
    ProviderLinkedElsewhere
from ..services.providers import ProviderVerifier, UnsupportedProvider
from ..services.sessions import SessionIssuer
from .links import LinkRegistry

logger = logging.getLogger(__name__)

CallbackResult = Union[domain.Session, domain.SignupRequired]


class OAuthOrchestrator(object):
    """Decides between login and signup-required for redirect callbacks."""

    def __init__(self, links: LinkRegistry, sessions: SessionIssuer,
                 verifiers: Mapping[domain.Provider, ProviderVerifier]) \
            -> None:
        self.links = links
        self.sessions = sessions
        self.verifiers = verifiers

    def begin(self, provider: domain.Provider) -> Tuple[str, str]:
        """
        Start the redirect flow.

        Returns
        -------
        str
            Provider URL to send the browser to.
        str
            Random state value the caller must check on return.

        """
        state = secrets.token_urlsafe(24)
        return self._verifier(provider).authorization_url(state), state

    def fetch_profile(self, provider: domain.Provider, code: str) \
            -> domain.ProviderProfile:
        """Exchange the returned code and verify the resulting token."""
        verifier = self._verifier(provider)
        return verifier.verify(verifier.exchange_code(code))

    def handle_profile(self, profile: domain.ProviderProfile) \
            -> CallbackResult:
        """Log in a known identity, or describe the signup it requires."""
        provider = domain.Provider(profile.provider)
        exists, organizer_id = self.links.identity_exists(
            profile.email, provider, profile.provider_id
        )
        if exists and organizer_id is not None:
            logger.debug('Redirect login for %s via %s', organizer_id,
                         provider)
            return self.sessions.issue(organizer_id)

        logger.debug('Unseen %s identity; signup required', provider)
        return domain.SignupRequired(
            provider=provider,
            email=profile.email,
            provider_id=profile.provider_id,
            profile_hints=profile.profile_hints(),
            signup_ticket=self.sessions.issue_signup_ticket(profile)
        )

    def social_signup(self, email: str, provider: domain.Provider,
                      provider_id: str,
                      profile_hints: Optional[Dict[str, Any]] = None,
                      ticket: Optional[str] = None) -> domain.Session:
        """
        Create an organizer for an identity that required signup.

        ``profile_hints`` are accepted for the signup form's benefit and are
        not persisted.

        Raises
        ------
        :class:`Conflict`
            The identity gained an account since the callback.
        :class:`EmailAlreadyRegistered`
            Another account uses this email without this provider.
        :class:`InvalidToken`
            ``ticket`` was given and does not match.

        """
        if ticket is not None:
            self.sessions.check_signup_ticket(ticket, email, provider,
                                              provider_id)
        exists, _ = self.links.identity_exists(email, provider, provider_id)
        if exists:
            raise Conflict('Account already exists. Please login instead.')
        if self.links.store.find_by_email(email) is not None:
            raise EmailAlreadyRegistered(
                'Email already exists. Log in and link the provider instead.'
            )
        try:
            organizer = self.links.create_social(email, provider, provider_id)
        except (EmailAlreadyRegistered, ProviderLinkedElsewhere) as e:
            # Lost a race with a concurrent signup for the same identity.
            raise Conflict('Account already exists. Please login instead.') \
                from e
        return self.sessions.issue(organizer.organizer_id)

    def _verifier(self, provider: domain.Provider) -> ProviderVerifier:
        try:
            return self.verifiers[provider]
        except KeyError as e:
            raise UnsupportedProvider(f'Unsupported provider: {provider}') \
                from e
