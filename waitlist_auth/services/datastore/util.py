"""Helpers and Flask application integration."""

from typing import Any, Callable, Generator, TypeVar, cast
from contextlib import contextmanager
from functools import wraps
import logging

from flask import Flask
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.session import Session

from ...exceptions import Unavailable
from .models import db

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


@contextmanager
def transaction() -> Generator[Session, None, None]:
    """Context manager for database transaction."""
    try:
        yield db.session
        db.session.commit()
    except Exception as e:
        logger.debug('Commit failed, rolling back: %s', str(e))
        db.session.rollback()
        raise


def unavailable_on_error(func: F) -> F:
    """Raise :class:`Unavailable` when the database cannot be reached."""
    @wraps(func)
    def inner(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except OperationalError as e:
            logger.error('Database is unavailable: %s', e)
            raise Unavailable('Database is temporarily unavailable') from e
    return cast(F, inner)


def init_app(app: Flask) -> None:
    """Set configuration defaults and attach session to the application."""
    app.config.setdefault('SQLALCHEMY_DATABASE_URI', 'sqlite://')
    app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
    db.init_app(app)


def current_session() -> Session:
    """Get/create database session for this context."""
    return db.session


def create_all() -> None:
    """Create all tables in the database."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in the database."""
    db.drop_all()
