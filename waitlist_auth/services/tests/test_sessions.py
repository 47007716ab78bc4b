"""Tests for :mod:`waitlist_auth.services.sessions`."""

from datetime import datetime, timedelta
from unittest import TestCase

import jwt
from pytz import UTC

from ... import domain
from ...exceptions import ExpiredToken, InvalidToken
from .. import sessions

SECRET = 'foosecret'


class TestIssue(TestCase):
    """Sign session tokens."""

    def setUp(self):
        self.issuer = sessions.SessionIssuer(SECRET)

    def test_issue(self):
        """The token carries the organizer ID and a 24 hour expiry."""
        before = datetime.now(tz=UTC)
        session = self.issuer.issue('abc123')
        self.assertIsInstance(session, domain.Session)
        self.assertEqual(session.organizer_id, 'abc123')

        claims = jwt.decode(session.token, SECRET, algorithms=['HS256'])
        self.assertEqual(claims['organizerId'], 'abc123')
        self.assertEqual(claims['exp'] - claims['iat'], 86400)
        self.assertGreaterEqual(session.expires,
                                before + timedelta(seconds=86399))

    def test_secret_required(self):
        with self.assertRaises(ValueError):
            sessions.SessionIssuer('')


class TestResolve(TestCase):
    """Verify session tokens."""

    def setUp(self):
        self.issuer = sessions.SessionIssuer(SECRET)

    def test_round_trip(self):
        token = self.issuer.issue('abc123').token
        self.assertEqual(self.issuer.resolve(token), 'abc123')

    def test_expired(self):
        """An expired token raises :class:`ExpiredToken`."""
        past = datetime.now(tz=UTC) - timedelta(days=2)
        token = jwt.encode({'organizerId': 'abc123', 'iat': past,
                            'exp': past + timedelta(days=1)},
                           SECRET, algorithm='HS256')
        with self.assertRaises(ExpiredToken):
            self.issuer.resolve(token)

    def test_wrong_secret(self):
        """A token signed with another secret is rejected."""
        token = sessions.SessionIssuer('othersecret').issue('abc123').token
        with self.assertRaises(InvalidToken):
            self.issuer.resolve(token)

    def test_garbage(self):
        for token in ('', None, 'definitelynotatoken'):
            with self.assertRaises(InvalidToken):
                self.issuer.resolve(token)

    def test_missing_organizer(self):
        """A validly signed token without an organizer ID is rejected."""
        token = jwt.encode({'exp': datetime.now(tz=UTC) + timedelta(hours=1)},
                           SECRET, algorithm='HS256')
        with self.assertRaises(InvalidToken):
            self.issuer.resolve(token)


class TestSignupTicket(TestCase):
    """Signup tickets bind an email to a verified provider identity."""

    def setUp(self):
        self.issuer = sessions.SessionIssuer(SECRET)
        self.profile = domain.GitHubProfile(email='ann@example.com',
                                            provider_id='42', username='ann')
        self.ticket = self.issuer.issue_signup_ticket(self.profile)

    def test_matching_ticket(self):
        self.issuer.check_signup_ticket(self.ticket, 'ann@example.com',
                                        domain.Provider.GITHUB, '42')

    def test_tampered_values(self):
        """A ticket only vouches for the values it was issued for."""
        with self.assertRaises(InvalidToken):
            self.issuer.check_signup_ticket(self.ticket, 'eve@example.com',
                                            domain.Provider.GITHUB, '42')
        with self.assertRaises(InvalidToken):
            self.issuer.check_signup_ticket(self.ticket, 'ann@example.com',
                                            domain.Provider.GITHUB, '43')
        with self.assertRaises(InvalidToken):
            self.issuer.check_signup_ticket(self.ticket, 'ann@example.com',
                                            domain.Provider.GOOGLE, '42')

    def test_ticket_is_not_a_session(self):
        """A signup ticket cannot be used as a session token."""
        with self.assertRaises(InvalidToken):
            self.issuer.resolve(self.ticket)

    def test_session_is_not_a_ticket(self):
        token = self.issuer.issue('abc123').token
        with self.assertRaises(InvalidToken):
            self.issuer.check_signup_ticket(token, 'ann@example.com',
                                            domain.Provider.GITHUB, '42')

    def test_expired_ticket(self):
        issuer = sessions.SessionIssuer(SECRET, ticket_duration=-10)
        ticket = issuer.issue_signup_ticket(self.profile)
        with self.assertRaises(ExpiredToken):
            issuer.check_signup_ticket(ticket, 'ann@example.com',
                                       domain.Provider.GITHUB, '42')
