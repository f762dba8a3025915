import enum
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, Boolean, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pelotas_arch.db.base import Base


class TrackerStatus(str, enum.Enum):
    online = "online"
    offline = "offline"
    disabled = "disabled"


class Tracker(Base):
    __tablename__ = "trackers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    serial: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    status: Mapped[TrackerStatus] = mapped_column(
        Enum(TrackerStatus), nullable=False, default=TrackerStatus.offline
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    owner_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    owner = relationship("Account", back_populates="trackers")
