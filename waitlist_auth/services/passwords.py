"""Hash and verify organizer passwords with bcrypt."""

import logging

import bcrypt

logger = logging.getLogger(__name__)

MIN_ROUNDS = 12
MAX_PASSWORD_BYTES = 72
"""bcrypt only considers the first 72 bytes of its input."""


class PasswordAuthenticator(object):
    """Slow one-way hashing of passwords with a fixed cost factor."""

    def __init__(self, rounds: int = MIN_ROUNDS) -> None:
        if rounds < MIN_ROUNDS:
            raise ValueError(f'bcrypt rounds must be at least {MIN_ROUNDS}')
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """
        Generate a salted bcrypt hash of a password.

        Raises
        ------
        :class:`ValueError`
            If the password is empty, not a string, or too long.

        """
        if not isinstance(password, str) or not password:
            raise ValueError('Password is required')
        encoded = password.encode('utf-8')
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError('Password is too long')
        hashed: bytes = bcrypt.hashpw(encoded, bcrypt.gensalt(self._rounds))
        return hashed.decode('ascii')

    def verify(self, password: str, hashed: str) -> bool:
        """Check a password against a stored hash. Never raises."""
        if not isinstance(password, str) or not password or not hashed:
            return False
        encoded = password.encode('utf-8')
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bool(bcrypt.checkpw(encoded, hashed.encode('ascii')))
        except ValueError as e:
            logger.error('Stored password hash is malformed: %s', e)
            return False
