"""Flask configuration."""
import secrets
import os

#################### Sessions ####################
JWT_SECRET = os.environ.get('JWT_SECRET', secrets.token_urlsafe(16))
"""Signs session tokens and signup tickets. Set it in every deployment."""

SESSION_DURATION = int(os.environ.get('SESSION_DURATION', '86400'))
"""Seconds a session token is valid for."""

SIGNUP_TICKET_DURATION = int(os.environ.get('SIGNUP_TICKET_DURATION', '900'))
"""Seconds a signup-required payload may be redeemed for."""

BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', '12'))


#################### Providers ####################
PROVIDER_TIMEOUT = float(os.environ.get('PROVIDER_TIMEOUT', '10'))
"""Seconds to wait for a provider API before failing the request."""

GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID', '')
GOOGLE_CLIENT_SECRET = os.environ.get('GOOGLE_CLIENT_SECRET', '')
GOOGLE_CALLBACK_URL = os.environ.get(
    'GOOGLE_CALLBACK_URL',
    'http://localhost:8000/auth/google/callback'
)

GITHUB_CLIENT_ID = os.environ.get('GITHUB_CLIENT_ID', '')
GITHUB_CLIENT_SECRET = os.environ.get('GITHUB_CLIENT_SECRET', '')
GITHUB_CALLBACK_URL = os.environ.get(
    'GITHUB_CALLBACK_URL',
    'http://localhost:8000/auth/github/callback'
)

FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')
"""Where the browser is sent at the end of the redirect flow."""


#################### Database ####################
SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite://')
SQLALCHEMY_TRACK_MODIFICATIONS = False
CREATE_DB = bool(int(os.environ.get('CREATE_DB', 0)))


#################### Minor configs ####################
SECRET_KEY = os.environ.get('SECRET_KEY', secrets.token_urlsafe(16))
"""Signs the Flask session cookie holding the OAuth ``state`` value."""

LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO')
