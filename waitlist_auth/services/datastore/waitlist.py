"""
Narrow interface onto the waitlist service and participant stores.

Only the calls needed to cascade an account deletion live here; creating
and editing services or participants belongs to the waitlist application.
"""

from typing import List
import logging

from . import util
from .models import DBParticipant, DBService

logger = logging.getLogger(__name__)


class WaitlistStore(object):
    """Services and participants owned by organizers."""

    @util.unavailable_on_error
    def list_services_by_owner(self, organizer_id: str) -> List[str]:
        """Get the IDs of all services owned by an organizer."""
        rows = util.current_session().query(DBService.service_id) \
            .filter(DBService.organizer_id == organizer_id) \
            .all()
        return [row.service_id for row in rows]

    @util.unavailable_on_error
    def delete_participants_by_service_ids(self, service_ids: List[str]) \
            -> int:
        """Delete all participants of the given services."""
        if not service_ids:
            return 0
        with util.transaction() as session:
            deleted: int = session.query(DBParticipant) \
                .filter(DBParticipant.service_id.in_(service_ids)) \
                .delete(synchronize_session=False)
        logger.debug('Deleted %i participants', deleted)
        return deleted

    @util.unavailable_on_error
    def delete_services_by_owner(self, organizer_id: str) -> int:
        """Delete all services owned by an organizer."""
        with util.transaction() as session:
            deleted: int = session.query(DBService) \
                .filter(DBService.organizer_id == organizer_id) \
                .delete(synchronize_session=False)
        logger.debug('Deleted %i services of %s', deleted, organizer_id)
        return deleted
