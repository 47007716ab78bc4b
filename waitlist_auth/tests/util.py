"""Testing helpers."""

from contextlib import contextmanager
from datetime import datetime
from typing import Generator, Optional

from flask import Flask
from pytz import UTC
from sqlalchemy.orm.session import Session

from .. import domain
from ..services.datastore import util
from ..services.datastore.models import DBParticipant, DBService


@contextmanager
def temporary_db(database_url: str = 'sqlite://', create: bool = True,
                 drop: bool = True) -> Generator[Session, None, None]:
    """Provide an in-memory sqlite database for testing purposes."""
    app = Flask('test')
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    util.init_app(app)
    with app.app_context():
        if create:
            util.create_all()
        try:
            yield util.current_session()
        finally:
            util.current_session().remove()
            if drop:
                util.drop_all()


def add_service(session: Session, organizer_id: str, service_id: str,
                participants: int = 0) -> None:
    """Create a waitlist service with some participants."""
    session.add(DBService(service_id=service_id, organizer_id=organizer_id,
                          name=f'Service {service_id}'))
    for i in range(participants):
        session.add(DBParticipant(service_id=service_id,
                                  email=f'person{i}@{service_id}.test'))
    session.commit()


def google_profile(email: str = 'ann@example.com', provider_id: str = 'g-1',
                   name: Optional[str] = 'Ann') -> domain.GoogleProfile:
    return domain.GoogleProfile(email=email, provider_id=provider_id,
                                name=name,
                                picture='https://img.example/ann.png')


def github_profile(email: str = 'ann@example.com', provider_id: str = '42',
                   username: Optional[str] = 'ann') -> domain.GitHubProfile:
    return domain.GitHubProfile(email=email, provider_id=provider_id,
                                username=username,
                                picture='https://img.example/42.png')


def an_organizer(**kwargs) -> domain.Organizer:
    """An in-memory organizer with only a password."""
    data = dict(organizer_id='abc123', email='ann@example.com',
                password_hash='$2b$12$notarealhash',
                social_providers=[], created_at=datetime.now(tz=UTC))
    data.update(kwargs)
    return domain.Organizer(**data)
