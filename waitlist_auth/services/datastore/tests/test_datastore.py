"""Tests for :mod:`waitlist_auth.services.datastore`."""

from unittest import TestCase, mock

from sqlalchemy.exc import OperationalError

from .... import domain
from ....exceptions import Unavailable
from ....tests.util import add_service, temporary_db
from ... import datastore
from ..models import DBParticipant, DBService, DBSocialProvider

GOOGLE = domain.Provider.GOOGLE
GITHUB = domain.Provider.GITHUB


class TestInsert(TestCase):
    """Create organizers with :meth:`CredentialStore.insert`."""

    def setUp(self):
        self.store = datastore.CredentialStore()

    def test_insert_with_password(self):
        """An organizer with only a password is created."""
        with temporary_db():
            organizer = self.store.insert('ann@example.com',
                                          password_hash='$2b$12$hash')
            self.assertEqual(len(organizer.organizer_id), 32)
            self.assertTrue(organizer.has_password)
            self.assertEqual(organizer.social_providers, [])
            self.assertIsNotNone(organizer.created_at)

            loaded = self.store.find_by_email('ann@example.com')
            self.assertEqual(loaded.organizer_id, organizer.organizer_id)

    def test_insert_with_provider(self):
        """An organizer with only a provider identity is created."""
        identity = domain.SocialIdentity(provider=GOOGLE, provider_id='g-1')
        with temporary_db():
            organizer = self.store.insert('ann@example.com',
                                          social=[identity])
            self.assertFalse(organizer.has_password)
            self.assertEqual(organizer.social_providers, [identity])

            owner = self.store.find_by_provider_identity(GOOGLE, 'g-1')
            self.assertEqual(owner.organizer_id, organizer.organizer_id)

    def test_insert_without_credentials(self):
        """An organizer must have a password or a provider."""
        with temporary_db():
            with self.assertRaises(ValueError):
                self.store.insert('ann@example.com')

    def test_duplicate_email(self):
        """A second organizer with the same email is rejected."""
        with temporary_db():
            self.store.insert('ann@example.com', password_hash='h1')
            with self.assertRaises(datastore.DuplicateEmail):
                self.store.insert('ann@example.com', password_hash='h2')

    def test_duplicate_provider_identity(self):
        """The same provider identity cannot back two organizers."""
        identity = domain.SocialIdentity(provider=GITHUB, provider_id='42')
        with temporary_db():
            self.store.insert('ann@example.com', social=[identity])
            with self.assertRaises(datastore.DuplicateProviderIdentity):
                self.store.insert('bob@example.com', social=[identity])
            self.assertIsNone(self.store.find_by_email('bob@example.com'))


class TestFind(TestCase):
    """Look up organizers."""

    def test_find_missing(self):
        """Lookups for unknown records return ``None``."""
        store = datastore.CredentialStore()
        with temporary_db():
            self.assertIsNone(store.find_by_id('nope'))
            self.assertIsNone(store.find_by_email('nobody@example.com'))
            self.assertIsNone(store.find_by_provider_identity(GOOGLE, 'x'))

    def test_email_match_is_exact(self):
        """The store does not normalize email addresses."""
        store = datastore.CredentialStore()
        with temporary_db():
            store.insert('ann@example.com', password_hash='h')
            self.assertIsNone(store.find_by_email('Ann@Example.com'))


class TestUpdate(TestCase):
    """Persist changes with :meth:`CredentialStore.update`."""

    def setUp(self):
        self.store = datastore.CredentialStore()

    def test_add_and_remove_providers(self):
        """Linked providers are synchronized with the domain object."""
        google = domain.SocialIdentity(provider=GOOGLE, provider_id='g-1')
        github = domain.SocialIdentity(provider=GITHUB, provider_id='42')
        with temporary_db() as session:
            organizer = self.store.insert('ann@example.com',
                                          password_hash='h', social=[google])
            updated = self.store.update(organizer.model_copy(update={
                'social_providers': [github]
            }))
            self.assertEqual(updated.social_providers, [github])
            self.assertIsNone(
                self.store.find_by_provider_identity(GOOGLE, 'g-1')
            )
            self.assertEqual(session.query(DBSocialProvider).count(), 1)

    def test_link_taken_identity(self):
        """Linking an identity owned by someone else is rejected."""
        identity = domain.SocialIdentity(provider=GITHUB, provider_id='42')
        with temporary_db():
            self.store.insert('ann@example.com', social=[identity])
            bob = self.store.insert('bob@example.com', password_hash='h')
            with self.assertRaises(datastore.DuplicateProviderIdentity):
                self.store.update(bob.model_copy(update={
                    'social_providers': [identity]
                }))
            self.assertEqual(
                self.store.find_by_id(bob.organizer_id).social_providers, []
            )

    def test_second_identity_for_provider(self):
        """An organizer has at most one identity per provider."""
        with temporary_db():
            ann = self.store.insert('ann@example.com', social=[
                domain.SocialIdentity(provider=GITHUB, provider_id='42')
            ])
            two = ann.social_providers + [
                domain.SocialIdentity(provider=GITHUB, provider_id='43')
            ]
            with self.assertRaises(datastore.DuplicateLink):
                self.store.update(ann.model_copy(
                    update={'social_providers': two}
                ))

    def test_update_password(self):
        """A password hash can be set on a social-only organizer."""
        with temporary_db():
            ann = self.store.insert('ann@example.com', social=[
                domain.SocialIdentity(provider=GOOGLE, provider_id='g-1')
            ])
            updated = self.store.update(
                ann.model_copy(update={'password_hash': 'newhash'})
            )
            self.assertEqual(updated.password_hash, 'newhash')


class TestDelete(TestCase):
    """Remove organizers with :meth:`CredentialStore.delete`."""

    def test_delete(self):
        """Deleting an organizer removes its linked providers."""
        store = datastore.CredentialStore()
        with temporary_db() as session:
            ann = store.insert('ann@example.com', social=[
                domain.SocialIdentity(provider=GOOGLE, provider_id='g-1')
            ])
            self.assertTrue(store.delete(ann.organizer_id))
            self.assertIsNone(store.find_by_id(ann.organizer_id))
            self.assertEqual(session.query(DBSocialProvider).count(), 0)
            self.assertFalse(store.delete(ann.organizer_id))


class TestWaitlistStore(TestCase):
    """Bulk operations on services and participants."""

    def setUp(self):
        self.waitlist = datastore.WaitlistStore()

    def test_list_and_delete(self):
        """Only the owner's services and their participants are removed."""
        with temporary_db() as session:
            add_service(session, 'ann', 's1', participants=3)
            add_service(session, 'ann', 's2', participants=0)
            add_service(session, 'bob', 's3', participants=2)

            ids = self.waitlist.list_services_by_owner('ann')
            self.assertEqual(sorted(ids), ['s1', 's2'])
            self.assertEqual(
                self.waitlist.delete_participants_by_service_ids(ids), 3
            )
            self.assertEqual(self.waitlist.delete_services_by_owner('ann'), 2)

            self.assertEqual(session.query(DBService).count(), 1)
            self.assertEqual(session.query(DBParticipant).count(), 2)

    def test_no_services(self):
        """Deleting for an organizer without services removes nothing."""
        with temporary_db():
            self.assertEqual(self.waitlist.list_services_by_owner('ann'), [])
            self.assertEqual(
                self.waitlist.delete_participants_by_service_ids([]), 0
            )
            self.assertEqual(self.waitlist.delete_services_by_owner('ann'), 0)


class TestUnavailable(TestCase):
    """Connection failures surface as :class:`Unavailable`."""

    @mock.patch(f'{datastore.__name__}.util.current_session')
    def test_operational_error(self, mock_current_session):
        mock_current_session.return_value.query.side_effect = \
            OperationalError('SELECT', {}, Exception('gone away'))
        with temporary_db():
            with self.assertRaises(Unavailable):
                datastore.CredentialStore().find_by_email('ann@example.com')
