"""Actor model: anyone interacting with the system, tagged with a role."""
import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, String, func
from sqlalchemy.orm import Mapped, mapped_column

from foodshare.models.base import Base
from foodshare.services.geo import Coordinate


class Role(str, enum.Enum):
    DONOR = "Donor"
    NGO = "NGO"
    VOLUNTEER = "Volunteer"
    ADMIN = "Admin"


class Actor(Base):
    __tablename__ = "actors"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False, index=True)
    # Operating location; only read by the matcher
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def coordinate(self) -> Coordinate | None:
        return Coordinate.of(self.latitude, self.longitude)
