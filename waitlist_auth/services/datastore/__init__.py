"""
Database integration for persisting organizer credentials.

:class:`CredentialStore` is the only component that reads or writes
organizer identity records. Uniqueness of ``email`` and of
``(provider, provider_id)`` is enforced by the database; a violation is
surfaced as a subclass of :class:`UniqueViolation` so that callers can turn
it into a business outcome.
"""

from typing import Iterable, List, Optional
import logging
import uuid

from sqlalchemy.exc import IntegrityError

from ... import domain
from . import util, models
from .models import DBOrganizer, DBSocialProvider
from .waitlist import WaitlistStore

logger = logging.getLogger(__name__)

init_app = util.init_app
create_all = util.create_all
drop_all = util.drop_all

__all__ = ('CredentialStore', 'WaitlistStore', 'UniqueViolation',
           'DuplicateEmail', 'DuplicateProviderIdentity', 'DuplicateLink',
           'init_app', 'create_all', 'drop_all')


class UniqueViolation(RuntimeError):
    """A write was rejected by a uniqueness constraint."""


class DuplicateEmail(UniqueViolation):
    """Another organizer already has this email address."""


class DuplicateProviderIdentity(UniqueViolation):
    """Another organizer already owns this ``(provider, provider_id)``."""


class DuplicateLink(UniqueViolation):
    """The organizer already has a different identity for this provider."""


class CredentialStore(object):
    """Persistence for :class:`domain.Organizer` records."""

    @util.unavailable_on_error
    def find_by_id(self, organizer_id: str) -> Optional[domain.Organizer]:
        """Load an organizer by its identifier."""
        db_organizer = self._load(organizer_id)
        if db_organizer is None:
            return None
        return db_organizer.to_domain()

    @util.unavailable_on_error
    def find_by_email(self, email: str) -> Optional[domain.Organizer]:
        """Load the organizer with exactly this email address."""
        db_organizer = util.current_session().query(DBOrganizer) \
            .filter(DBOrganizer.email == email) \
            .first()
        if db_organizer is None:
            return None
        return db_organizer.to_domain()

    @util.unavailable_on_error
    def find_by_provider_identity(self, provider: domain.Provider,
                                  provider_id: str) \
            -> Optional[domain.Organizer]:
        """Load the organizer that owns ``(provider, provider_id)``."""
        db_social = util.current_session().query(DBSocialProvider) \
            .filter(DBSocialProvider.provider == str(provider)) \
            .filter(DBSocialProvider.provider_id == provider_id) \
            .first()
        if db_social is None:
            return None
        return db_social.organizer.to_domain()

    @util.unavailable_on_error
    def insert(self, email: str, password_hash: Optional[str] = None,
               social: Iterable[domain.SocialIdentity] = ()) \
            -> domain.Organizer:
        """
        Create a new organizer.

        Parameters
        ----------
        email : str
        password_hash : str or None
        social : iterable
            Items are :class:`domain.SocialIdentity` instances.

        Returns
        -------
        :class:`domain.Organizer`

        Raises
        ------
        :class:`DuplicateEmail`
        :class:`DuplicateProviderIdentity`

        """
        social = list(social)
        if not password_hash and not social:
            raise ValueError('Organizer needs a password or a provider')

        db_organizer = DBOrganizer(organizer_id=uuid.uuid4().hex,
                                   email=email,
                                   password_hash=password_hash)
        for identity in social:
            db_organizer.social_providers.append(
                DBSocialProvider(provider=str(identity.provider),
                                 provider_id=identity.provider_id)
            )
        try:
            with util.transaction() as session:
                session.add(db_organizer)
        except IntegrityError as e:
            raise self._classify(None, email, social) from e
        logger.debug('Created organizer %s', db_organizer.organizer_id)
        return db_organizer.to_domain()

    @util.unavailable_on_error
    def update(self, organizer: domain.Organizer) -> domain.Organizer:
        """
        Persist changes to the password hash and linked providers.

        ``organizer_id``, ``email`` and ``created_at`` are immutable here.
        """
        db_organizer = self._load(organizer.organizer_id)
        if db_organizer is None:
            raise ValueError(f'No organizer {organizer.organizer_id}')

        wanted = {(str(s.provider), s.provider_id)
                  for s in organizer.social_providers}
        extant = {(s.provider, s.provider_id): s
                  for s in db_organizer.social_providers}
        added: List[domain.SocialIdentity] = []
        try:
            with util.transaction() as session:
                db_organizer.password_hash = organizer.password_hash
                for key in set(extant) - wanted:
                    db_organizer.social_providers.remove(extant[key])
                for provider, provider_id in wanted - set(extant):
                    db_organizer.social_providers.append(
                        DBSocialProvider(provider=provider,
                                         provider_id=provider_id)
                    )
                    added.append(domain.SocialIdentity(
                        provider=provider, provider_id=provider_id
                    ))
                session.add(db_organizer)
        except IntegrityError as e:
            raise self._classify(organizer.organizer_id, None, added) from e
        return db_organizer.to_domain()

    @util.unavailable_on_error
    def delete(self, organizer_id: str) -> bool:
        """Delete an organizer and its linked providers."""
        db_organizer = self._load(organizer_id)
        if db_organizer is None:
            return False
        with util.transaction() as session:
            session.delete(db_organizer)
        logger.debug('Deleted organizer %s', organizer_id)
        return True

    def _load(self, organizer_id: str) -> Optional[DBOrganizer]:
        return util.current_session().get(DBOrganizer, organizer_id)

    def _classify(self, organizer_id: Optional[str], email: Optional[str],
                  social: List[domain.SocialIdentity]) -> UniqueViolation:
        """Work out which uniqueness constraint rejected a write."""
        for identity in social:
            owner = self.find_by_provider_identity(identity.provider,
                                                   identity.provider_id)
            if owner is not None and owner.organizer_id != organizer_id:
                return DuplicateProviderIdentity(
                    f'{identity.provider} identity is already linked'
                )
        if organizer_id is not None:
            current = self.find_by_id(organizer_id)
            if current is not None and any(current.has_provider(i.provider)
                                           for i in social):
                return DuplicateLink('Provider is already linked')
        if email is not None and self.find_by_email(email) is not None:
            return DuplicateEmail('Email is already registered')
        return UniqueViolation('Uniqueness constraint violated')
