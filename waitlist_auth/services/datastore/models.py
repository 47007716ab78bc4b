"""SQLAlchemy models for organizer credentials and owned waitlist data."""

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from pytz import UTC
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, \
    UniqueConstraint
from sqlalchemy.orm import relationship

from ... import domain

db: SQLAlchemy = SQLAlchemy()


def _now() -> datetime:
    return datetime.now(tz=UTC)


class DBOrganizer(db.Model):
    """Persistence for :class:`domain.Organizer`."""

    __tablename__ = 'organizers'

    organizer_id = Column(String(32), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False,
                        default=_now, onupdate=_now)

    social_providers = relationship('DBSocialProvider',
                                    back_populates='organizer',
                                    cascade='all, delete-orphan',
                                    lazy='joined')

    def to_domain(self) -> domain.Organizer:
        """Generate a :class:`domain.Organizer` from this row."""
        return domain.Organizer(
            organizer_id=self.organizer_id,
            email=self.email,
            password_hash=self.password_hash,
            social_providers=[
                domain.SocialIdentity(provider=social.provider,
                                      provider_id=social.provider_id)
                for social in self.social_providers
            ],
            created_at=self.created_at
        )


class DBSocialProvider(db.Model):
    """
    A provider identity linked to an organizer.

    ``uq_provider_identity`` is the authoritative guard against two
    organizers claiming the same ``(provider, provider_id)`` pair.
    """

    __tablename__ = 'organizer_social_providers'
    __table_args__ = (
        UniqueConstraint('provider', 'provider_id',
                         name='uq_provider_identity'),
        UniqueConstraint('organizer_id', 'provider',
                         name='uq_organizer_provider'),
    )

    social_provider_id = Column(Integer, primary_key=True,
                                autoincrement=True)
    organizer_id = Column(ForeignKey('organizers.organizer_id',
                                     ondelete='CASCADE'),
                          nullable=False, index=True)
    provider = Column(String(16), nullable=False)
    provider_id = Column(String(255), nullable=False)
    linked_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    organizer = relationship('DBOrganizer',
                             back_populates='social_providers')


class DBService(db.Model):
    """A waitlist service page. Only ownership matters to this package."""

    __tablename__ = 'services'

    service_id = Column(String(32), primary_key=True)
    organizer_id = Column(String(32), nullable=False, index=True)
    name = Column(String(255), nullable=False, default='')
    created_at = Column(DateTime(timezone=True), nullable=False,
                        default=_now)

    participants = relationship('DBParticipant', back_populates='service')


class DBParticipant(db.Model):
    """Someone who joined the waitlist of a :class:`DBService`."""

    __tablename__ = 'participants'

    participant_id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(ForeignKey('services.service_id'), nullable=False,
                        index=True)
    email = Column(String(255), nullable=False)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    service = relationship('DBService', back_populates='participants')
