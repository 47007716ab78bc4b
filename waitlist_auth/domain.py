"""Defines organizer identity concepts for the waitlist auth core."""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Provider(str, Enum):
    """External identity issuers an organizer may link."""

    GOOGLE = 'google'
    GITHUB = 'github'

    def __str__(self) -> str:
        return self.value


EMAIL_METHOD = 'email'
"""Name of the password auth method in :attr:`Organizer.auth_methods`."""


class SocialIdentity(BaseModel):
    """A ``(provider, provider_id)`` pair linked to an organizer."""

    provider: Provider
    provider_id: str
    """Stable subject identifier assigned by the provider."""


class Organizer(BaseModel):
    """The account entity owning credentials and waitlist services."""

    organizer_id: str
    """Opaque identifier assigned at creation. Immutable."""

    email: str
    """Unique across all organizers."""

    password_hash: Optional[str] = None
    """Present iff password login is enabled for this account."""

    social_providers: List[SocialIdentity] = []

    created_at: datetime

    @property
    def has_password(self) -> bool:
        """Whether password login is enabled."""
        return bool(self.password_hash)

    def has_provider(self, provider: Union[Provider, str]) -> bool:
        """Whether ``provider`` is linked to this organizer."""
        return any(s.provider == provider for s in self.social_providers)

    def identity_for(self, provider: Union[Provider, str]) \
            -> Optional[SocialIdentity]:
        """Get the linked identity for ``provider``, if any."""
        for social in self.social_providers:
            if social.provider == provider:
                return social
        return None

    @property
    def auth_methods(self) -> List[str]:
        """Names of the usable credential types, password first."""
        methods: List[str] = []
        if self.has_password:
            methods.append(EMAIL_METHOD)
        for social in self.social_providers:
            if social.provider.value not in methods:
                methods.append(social.provider.value)
        return methods

    def can_unlink(self, provider: Union[Provider, str]) -> bool:
        """Whether removing ``provider`` leaves at least one credential."""
        remaining = [s for s in self.social_providers
                     if s.provider != provider]
        return self.has_password or len(remaining) > 0


class GoogleProfile(BaseModel):
    """Canonical profile extracted from a verified Google token."""

    provider: Literal['google'] = 'google'
    email: str
    provider_id: str
    name: Optional[str] = None
    picture: Optional[str] = None

    @property
    def identity(self) -> SocialIdentity:
        return SocialIdentity(provider=Provider.GOOGLE,
                              provider_id=self.provider_id)

    def profile_hints(self) -> Dict[str, Any]:
        """Optional data a signup form may prefill."""
        hints: Dict[str, Any] = {}
        if self.name:
            hints['name'] = self.name
        if self.picture:
            hints['picture'] = self.picture
        return hints


class GitHubProfile(BaseModel):
    """Canonical profile extracted from a verified GitHub token."""

    provider: Literal['github'] = 'github'
    email: str
    provider_id: str
    username: Optional[str] = None
    picture: Optional[str] = None

    @property
    def identity(self) -> SocialIdentity:
        return SocialIdentity(provider=Provider.GITHUB,
                              provider_id=self.provider_id)

    def profile_hints(self) -> Dict[str, Any]:
        """Optional data a signup form may prefill."""
        hints: Dict[str, Any] = {}
        if self.username:
            hints['username'] = self.username
        if self.picture:
            hints['picture'] = self.picture
        return hints


ProviderProfile = Annotated[Union[GoogleProfile, GitHubProfile],
                            Field(discriminator='provider')]
"""A verified provider profile, tagged by ``provider``."""


class Session(BaseModel):
    """A signed, time-bounded token asserting an organizer identifier."""

    token: str
    organizer_id: str
    expires: datetime
    requires_signup: Literal[False] = False
    """Tells a callback login apart from :class:`SignupRequired`."""


class SignupRequired(BaseModel):
    """
    Outcome of a redirect callback for an unseen provider identity.

    Nothing has been written when this is returned. The client must call
    the explicit social signup operation with the carried values.
    """

    requires_signup: Literal[True] = True
    provider: Provider
    email: str
    provider_id: str
    profile_hints: Dict[str, Any] = {}
    signup_ticket: Optional[str] = None
    """Signed proof that the triple came from a verified provider profile."""


class OrganizerSummary(BaseModel):
    """Public view of a newly created organizer."""

    organizer_id: str
    email: str
    created_at: datetime


class Profile(BaseModel):
    """Full profile of an organizer, including its credential types."""

    organizer_id: str
    email: str
    created_at: datetime
    auth_methods: List[str]
    social_providers: List[SocialIdentity]


class DeletionReport(BaseModel):
    """Counts of data removed by an account deletion."""

    deleted_services: int
    deleted_participants: int
    deleted_at: datetime


def summarize(organizer: Organizer) -> OrganizerSummary:
    """Get the public summary of an :class:`Organizer`."""
    return OrganizerSummary(organizer_id=organizer.organizer_id,
                            email=organizer.email,
                            created_at=organizer.created_at)


def profile_of(organizer: Organizer) -> Profile:
    """Get the full :class:`Profile` of an :class:`Organizer`."""
    return Profile(organizer_id=organizer.organizer_id,
                   email=organizer.email,
                   created_at=organizer.created_at,
                   auth_methods=organizer.auth_methods,
                   social_providers=list(organizer.social_providers))
