from pelotas_arch.models.account import Account
from pelotas_arch.models.tracker import Tracker, TrackerStatus

__all__ = ["Account", "Tracker", "TrackerStatus"]
