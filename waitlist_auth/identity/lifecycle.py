"""Cascading deletion of organizer accounts."""

from datetime import datetime
import logging

from pytz import UTC

from .. import domain
from ..exceptions import AccountNotFound
from ..services.datastore import CredentialStore, WaitlistStore

logger = logging.getLogger(__name__)


class AccountLifecycle(object):
    """
    Deletes an organizer together with everything it owns.

    This is not one transaction across stores. Steps run in the order
    participants, services, organizer, so a failure part way never leaves
    participants of a deleted service, nor services of a deleted organizer.
    """

    def __init__(self, store: CredentialStore,
                 waitlist: WaitlistStore) -> None:
        self.store = store
        self.waitlist = waitlist

    def delete_account(self, organizer_id: str) -> domain.DeletionReport:
        """
        Delete an organizer, its services, and their participants.

        Raises
        ------
        :class:`AccountNotFound`
            Nothing is deleted anywhere.

        """
        if self.store.find_by_id(organizer_id) is None:
            raise AccountNotFound('Account not found')

        service_ids = self.waitlist.list_services_by_owner(organizer_id)
        participants = \
            self.waitlist.delete_participants_by_service_ids(service_ids)
        services = self.waitlist.delete_services_by_owner(organizer_id)
        self.store.delete(organizer_id)

        logger.info('Deleted organizer %s with %i services, %i participants',
                    organizer_id, services, participants)
        return domain.DeletionReport(deleted_services=services,
                                     deleted_participants=participants,
                                     deleted_at=datetime.now(tz=UTC))
