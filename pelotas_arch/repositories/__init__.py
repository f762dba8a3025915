from pelotas_arch.repositories.base import BaseRepository
from pelotas_arch.repositories.descriptor import EntityDescriptor, describe
from pelotas_arch.repositories.tracker import AccountRepository, TrackerRepository

__all__ = [
    "AccountRepository",
    "BaseRepository",
    "EntityDescriptor",
    "TrackerRepository",
    "describe",
]
