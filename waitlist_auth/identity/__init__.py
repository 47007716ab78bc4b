"""
Inbound operations of the organizer identity core.

:class:`IdentityService` is built once per application from its
configuration and then shared by every request. It holds no mutable state
of its own; all state lives in the credential store.
"""

from typing import Any, Dict, Mapping, Optional, Tuple, Union
import logging

from pydantic import TypeAdapter, ValidationError

from .. import domain
from ..exceptions import AccountNotFound, EmailAlreadyRegistered, \
    InvalidCredentials, InvalidProviderToken, InvalidToken
from ..services.datastore import CredentialStore, DuplicateEmail, \
    WaitlistStore
from ..services.passwords import PasswordAuthenticator
from ..services.providers import ProviderVerifier, build_verifiers, \
    parse_provider
from ..services.sessions import SessionIssuer
from .lifecycle import AccountLifecycle
from .links import LinkRegistry
from .oauth import CallbackResult, OAuthOrchestrator

logger = logging.getLogger(__name__)

_profiles: TypeAdapter = TypeAdapter(domain.ProviderProfile)

_LABELS = {domain.Provider.GOOGLE: 'Google', domain.Provider.GITHUB: 'GitHub'}


def normalize_email(email: Any) -> str:
    """Canonical form used for all email comparisons."""
    if not isinstance(email, str) or not email.strip():
        raise ValueError('Email is required')
    return email.strip().lower()


class IdentityService(object):
    """Signup, login, provider linking, and account deletion."""

    def __init__(self, store: CredentialStore, waitlist: WaitlistStore,
                 passwords: PasswordAuthenticator, sessions: SessionIssuer,
                 verifiers: Mapping[domain.Provider, ProviderVerifier]) \
            -> None:
        self.store = store
        self.passwords = passwords
        self.sessions = sessions
        self.verifiers = verifiers
        self.links = LinkRegistry(store)
        self.oauth = OAuthOrchestrator(self.links, sessions, verifiers)
        self.lifecycle = AccountLifecycle(store, waitlist)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'IdentityService':
        """Build the service from application configuration."""
        return cls(
            store=CredentialStore(),
            waitlist=WaitlistStore(),
            passwords=PasswordAuthenticator(
                rounds=int(config.get('BCRYPT_ROUNDS', 12))
            ),
            sessions=SessionIssuer(
                config['JWT_SECRET'],
                duration=int(config.get('SESSION_DURATION', 86400)),
                ticket_duration=int(config.get('SIGNUP_TICKET_DURATION', 900))
            ),
            verifiers=build_verifiers(config)
        )

    def signup(self, email: str, password: str) -> domain.OrganizerSummary:
        """Create a password account."""
        email = normalize_email(email)
        if self.store.find_by_email(email) is not None:
            raise EmailAlreadyRegistered('Email already exists')
        password_hash = self.passwords.hash(password)
        try:
            organizer = self.store.insert(email, password_hash=password_hash)
        except DuplicateEmail as e:
            raise EmailAlreadyRegistered('Email already exists') from e
        logger.info('Created organizer %s with password',
                    organizer.organizer_id)
        return domain.summarize(organizer)

    def login(self, email: str, password: str) -> domain.Session:
        """Log in with email and password."""
        try:
            email = normalize_email(email)
        except ValueError as e:
            raise InvalidCredentials('Invalid credentials') from e
        organizer = self.store.find_by_email(email)
        if organizer is None:
            raise InvalidCredentials('Invalid credentials')
        if not organizer.has_password:
            raise InvalidCredentials(
                'This account uses social login. Please sign in with Google'
                ' or GitHub.'
            )
        if not self.passwords.verify(password, organizer.password_hash):
            raise InvalidCredentials('Invalid credentials')
        return self.sessions.issue(organizer.organizer_id)

    def social_token_auth(self, provider: Union[domain.Provider, str],
                          token: str) -> domain.Session:
        """
        Log in or sign up with a provider token the client already holds.

        Unlike :meth:`oauth_callback`, this creates an account for an unseen
        identity.
        """
        provider = parse_provider(provider)
        profile = self.verifiers[provider].verify(token)
        organizer = self.links.find_or_create_by_social(
            normalize_email(profile.email), provider, profile.provider_id
        )
        return self.sessions.issue(organizer.organizer_id)

    def oauth_callback(self, provider: Union[domain.Provider, str],
                       profile: Union[domain.ProviderProfile,
                                      Mapping[str, Any]]) -> CallbackResult:
        """Decide the outcome of a redirect callback. Never creates."""
        provider = parse_provider(provider)
        profile = self._parse_profile(provider, profile)
        profile = profile.model_copy(
            update={'email': normalize_email(profile.email)}
        )
        return self.oauth.handle_profile(profile)

    def begin_oauth(self, provider: Union[domain.Provider, str]) \
            -> Tuple[str, str]:
        """Get the provider consent URL and the state value to check."""
        return self.oauth.begin(parse_provider(provider))

    def complete_oauth(self, provider: Union[domain.Provider, str],
                       code: str) -> CallbackResult:
        """Exchange an authorization code and decide the callback outcome."""
        provider = parse_provider(provider)
        return self.oauth_callback(provider,
                                   self.oauth.fetch_profile(provider, code))

    def social_signup(self, email: str,
                      provider: Union[domain.Provider, str],
                      provider_id: str,
                      profile_hints: Optional[Dict[str, Any]] = None,
                      ticket: Optional[str] = None) -> domain.Session:
        """Explicitly create an account after a signup-required callback."""
        if not provider_id:
            raise ValueError('Provider ID is required')
        return self.oauth.social_signup(normalize_email(email),
                                        parse_provider(provider),
                                        str(provider_id),
                                        profile_hints=profile_hints,
                                        ticket=ticket)

    def link_provider(self, organizer_id: str,
                      provider: Union[domain.Provider, str],
                      token: str) -> str:
        """Verify a provider token and link its identity to an organizer."""
        provider = parse_provider(provider)
        if self.store.find_by_id(organizer_id) is None:
            raise AccountNotFound('Organizer not found')
        profile = self.verifiers[provider].verify(token)
        self.links.link(organizer_id, provider, profile.provider_id)
        return f'{_LABELS[provider]} account linked successfully'

    def unlink_provider(self, organizer_id: str,
                        provider: Union[domain.Provider, str]) -> str:
        """Remove a provider, keeping at least one credential."""
        provider = parse_provider(provider)
        self.links.unlink(organizer_id, provider)
        return f'{provider} account unlinked successfully'

    def get_full_profile(self, organizer_id: str) -> domain.Profile:
        """Get an organizer's profile including its auth methods."""
        organizer = self.store.find_by_id(organizer_id)
        if organizer is None:
            raise AccountNotFound('Organizer not found')
        return domain.profile_of(organizer)

    def delete_account(self, organizer_id: str) -> domain.DeletionReport:
        """Delete an organizer and everything it owns."""
        return self.lifecycle.delete_account(organizer_id)

    def authenticate(self, token: str) -> domain.Organizer:
        """
        Resolve a session token to a live organizer.

        An organizer deleted after the token was issued is not trusted.
        """
        organizer_id = self.sessions.resolve(token)
        organizer = self.store.find_by_id(organizer_id)
        if organizer is None:
            logger.debug('Session for deleted organizer %s', organizer_id)
            raise InvalidToken('Invalid token')
        return organizer

    def _parse_profile(self, provider: domain.Provider,
                       profile: Union[domain.ProviderProfile,
                                      Mapping[str, Any]]) \
            -> domain.ProviderProfile:
        if isinstance(profile, Mapping):
            data = dict(profile)
            if 'providerId' in data:
                data['provider_id'] = str(data.pop('providerId'))
            data.setdefault('provider', provider.value)
            try:
                profile = _profiles.validate_python(data)
            except ValidationError as e:
                raise InvalidProviderToken(
                    f'Incomplete {provider} profile'
                ) from e
        if profile.provider != provider.value:
            raise InvalidProviderToken(f'Not a {provider} profile')
        return profile
