"""Tests for :mod:`waitlist_auth.services.providers`."""

from unittest import TestCase, mock
from urllib.parse import parse_qs, urlparse

import requests

from .... import domain
from ....exceptions import InvalidProviderToken
from ... import providers

CONFIG = {
    'GOOGLE_CLIENT_ID': 'gid',
    'GOOGLE_CLIENT_SECRET': 'gsecret',
    'GOOGLE_CALLBACK_URL': 'http://localhost/auth/google/callback',
    'GITHUB_CLIENT_ID': 'hid',
    'GITHUB_CLIENT_SECRET': 'hsecret',
    'GITHUB_CALLBACK_URL': 'http://localhost/auth/github/callback',
    'PROVIDER_TIMEOUT': '3',
}


class TestBuildVerifiers(TestCase):
    """Build verifiers from application config."""

    def test_build(self):
        verifiers = providers.build_verifiers(CONFIG)
        self.assertEqual(set(verifiers), set(domain.Provider))
        google = verifiers[domain.Provider.GOOGLE]
        self.assertIsInstance(google, providers.GoogleVerifier)
        self.assertEqual(google.client_id, 'gid')
        self.assertEqual(google.timeout, 3.0)
        self.assertIsInstance(verifiers[domain.Provider.GITHUB],
                              providers.GitHubVerifier)

    def test_default_timeout(self):
        verifier = providers.get_verifier('github', {})
        self.assertEqual(verifier.timeout, providers.DEFAULT_TIMEOUT)

    def test_unsupported(self):
        """Only Google and GitHub are supported."""
        with self.assertRaises(providers.UnsupportedProvider):
            providers.parse_provider('facebook')
        with self.assertRaises(ValueError):
            providers.get_verifier('facebook', CONFIG)


class TestRedirectFlow(TestCase):
    """Build consent URLs and exchange authorization codes."""

    def setUp(self):
        self.session = mock.MagicMock(spec=requests.Session)
        self.verifier = providers.GitHubVerifier(
            client_id='hid', client_secret='hsecret',
            callback_url='http://localhost/auth/github/callback',
            session=self.session
        )

    def test_authorization_url(self):
        url = urlparse(self.verifier.authorization_url('xyz'))
        self.assertEqual(url.netloc, 'github.com')
        query = parse_qs(url.query)
        self.assertEqual(query['client_id'], ['hid'])
        self.assertEqual(query['state'], ['xyz'])
        self.assertEqual(query['redirect_uri'],
                         ['http://localhost/auth/github/callback'])
        self.assertEqual(query['scope'], ['read:user user:email'])

    def test_exchange_code(self):
        self.session.request.return_value = mock.MagicMock(status_code=200)
        self.session.request.return_value.json.return_value = \
            {'access_token': 'gho_token', 'token_type': 'bearer'}
        self.assertEqual(self.verifier.exchange_code('thecode'), 'gho_token')
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ('POST', self.verifier.token_endpoint))
        self.assertEqual(kwargs['data']['code'], 'thecode')
        self.assertEqual(kwargs['data']['client_secret'], 'hsecret')

    def test_exchange_bad_code(self):
        """GitHub reports a bad code with 200 and an error field."""
        self.session.request.return_value = mock.MagicMock(status_code=200)
        self.session.request.return_value.json.return_value = \
            {'error': 'bad_verification_code'}
        with self.assertRaises(InvalidProviderToken):
            self.verifier.exchange_code('stale')

    def test_exchange_missing_code(self):
        with self.assertRaises(InvalidProviderToken):
            self.verifier.exchange_code('')
        self.assertEqual(self.session.request.call_count, 0)
