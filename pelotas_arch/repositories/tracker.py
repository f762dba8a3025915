"""Repositories of the tracker persistence unit."""

from sqlalchemy.orm import Session

from pelotas_arch.models.account import Account
from pelotas_arch.models.tracker import Tracker
from pelotas_arch.repositories.base import BaseRepository
from pelotas_arch.repositories.descriptor import EntityDescriptor

# Everything on Account except the e-mail address is queryable
ACCOUNT_FIELDS = EntityDescriptor(
    Account, exposed=("id", "name", "active", "created_at", "trackers")
)


class TrackerRepository(BaseRepository[Tracker, int]):
    def __init__(self, session: Session):
        super().__init__(session, Tracker)


class AccountRepository(BaseRepository[Account, int]):
    def __init__(self, session: Session):
        super().__init__(session, ACCOUNT_FIELDS)
