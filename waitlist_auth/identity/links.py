"""
Linking of provider identities to organizers.

:class:`LinkRegistry` enforces two invariants on top of the credential
store: a ``(provider, provider_id)`` pair belongs to at most one organizer,
and no organizer is ever left without a usable credential. The pre-checks
here are a fast path; the store's uniqueness constraint is the authoritative
guard when independent requests race for the same identity.
"""

from typing import Optional, Tuple
import logging

from .. import domain
from ..exceptions import AccountNotFound, EmailAlreadyRegistered, \
    LastAuthMethodViolation, ProviderAlreadyLinked, ProviderLinkedElsewhere, \
    ProviderNotLinked
from ..services.datastore import CredentialStore, DuplicateEmail, \
    DuplicateLink, UniqueViolation

logger = logging.getLogger(__name__)


class LinkRegistry(object):
    """Adds, removes and resolves provider identities."""

    def __init__(self, store: CredentialStore) -> None:
        self.store = store

    def identity_exists(self, email: str, provider: domain.Provider,
                        provider_id: str) -> Tuple[bool, Optional[str]]:
        """
        Determine whether a provider identity already has an account.

        True if an organizer owns exactly ``(provider, provider_id)``, or if
        the organizer with exactly ``email`` has ``provider`` linked.

        Returns
        -------
        bool
        str or None
            Identifier of the owning organizer.

        """
        owner = self.store.find_by_provider_identity(provider, provider_id)
        if owner is not None:
            return True, owner.organizer_id

        organizer = self.store.find_by_email(email)
        if organizer is not None and organizer.has_provider(provider):
            linked = organizer.identity_for(provider)
            if linked is not None and linked.provider_id != provider_id:
                logger.warning('Matched %s on email; %s id differs',
                               organizer.organizer_id, provider)
            return True, organizer.organizer_id
        return False, None

    def link(self, organizer_id: str, provider: domain.Provider,
             provider_id: str) -> domain.Organizer:
        """
        Link ``(provider, provider_id)`` to an existing organizer.

        Raises
        ------
        :class:`AccountNotFound`
        :class:`ProviderAlreadyLinked`
            The organizer already has ``provider`` linked.
        :class:`ProviderLinkedElsewhere`
            Another organizer owns ``(provider, provider_id)``.

        """
        organizer = self._get(organizer_id)
        if organizer.has_provider(provider):
            raise ProviderAlreadyLinked(
                f'{provider} account is already linked to this organizer'
            )
        owner = self.store.find_by_provider_identity(provider, provider_id)
        if owner is not None and owner.organizer_id != organizer_id:
            raise ProviderLinkedElsewhere(
                f'This {provider} account is already linked to another'
                ' organizer'
            )
        return self._append(organizer, provider, provider_id)

    def unlink(self, organizer_id: str,
               provider: domain.Provider) -> domain.Organizer:
        """
        Remove ``provider`` from an organizer.

        Raises
        ------
        :class:`AccountNotFound`
        :class:`ProviderNotLinked`
        :class:`LastAuthMethodViolation`
            Removing the provider would leave no password and no providers.

        """
        organizer = self._get(organizer_id)
        if not organizer.has_provider(provider):
            raise ProviderNotLinked(
                f'{provider} provider is not linked to this account'
            )
        if not organizer.can_unlink(provider):
            raise LastAuthMethodViolation(
                'Cannot unlink the last authentication method. You must have'
                ' at least one way to access your account.'
            )
        remaining = [s for s in organizer.social_providers
                     if s.provider != provider]
        updated = organizer.model_copy(update={'social_providers': remaining})
        logger.debug('Unlinking %s from %s', provider, organizer_id)
        return self.store.update(updated)

    def find_or_create_by_social(self, email: str,
                                 provider: domain.Provider,
                                 provider_id: str) -> domain.Organizer:
        """
        Resolve a provider identity from a direct token exchange.

        This may create an account, because the caller is a client that
        legitimately obtained the provider token. The redirect flow must use
        :meth:`identity_exists` instead.

        Raises
        ------
        :class:`ProviderLinkedElsewhere`
            The identity belongs to an organizer with a different email.

        """
        owner = self.store.find_by_provider_identity(provider, provider_id)
        if owner is not None:
            if owner.email != email:
                raise ProviderLinkedElsewhere(
                    f'This {provider} account is already linked to another'
                    ' account'
                )
            return owner

        organizer = self.store.find_by_email(email)
        if organizer is None:
            return self.create_social(email, provider, provider_id)
        if organizer.has_provider(provider):
            return organizer
        return self._append(organizer, provider, provider_id)

    def create_social(self, email: str, provider: domain.Provider,
                      provider_id: str) -> domain.Organizer:
        """Create an organizer whose only credential is one identity."""
        identity = domain.SocialIdentity(provider=provider,
                                         provider_id=provider_id)
        try:
            organizer = self.store.insert(email, social=[identity])
        except DuplicateEmail as e:
            raise EmailAlreadyRegistered('Email already exists') from e
        except UniqueViolation as e:
            raise ProviderLinkedElsewhere(
                f'This {provider} account is already linked to another'
                ' account'
            ) from e
        logger.info('Created organizer %s with %s', organizer.organizer_id,
                    provider)
        return organizer

    def _append(self, organizer: domain.Organizer, provider: domain.Provider,
                provider_id: str) -> domain.Organizer:
        identity = domain.SocialIdentity(provider=provider,
                                         provider_id=provider_id)
        updated = organizer.model_copy(update={
            'social_providers': organizer.social_providers + [identity]
        })
        try:
            organizer = self.store.update(updated)
        except DuplicateLink as e:
            raise ProviderAlreadyLinked(
                f'{provider} account is already linked to this organizer'
            ) from e
        except UniqueViolation as e:
            raise ProviderLinkedElsewhere(
                f'This {provider} account is already linked to another'
                ' organizer'
            ) from e
        logger.debug('Linked %s to %s', provider, organizer.organizer_id)
        return organizer

    def _get(self, organizer_id: str) -> domain.Organizer:
        organizer = self.store.find_by_id(organizer_id)
        if organizer is None:
            raise AccountNotFound('Organizer not found')
        return organizer
