"""Donation model: a unit of surplus food tracked from offer to delivery."""
import enum
from datetime import datetime, timedelta

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from foodshare.models.base import Base
from foodshare.services.errors import InvalidCoordinate
from foodshare.services.geo import Coordinate


class DonationStatus(str, enum.Enum):
    AVAILABLE = "Available"
    ACCEPTED = "Accepted"
    PICKED_UP = "PickedUp"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    EXPIRED = "Expired"


class Donation(Base):
    __tablename__ = "donations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    donor_id: Mapped[int] = mapped_column(ForeignKey("actors.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    food_category: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[str] = mapped_column(String(64), nullable=False)
    # Pickup point; a donation without one is never matched
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    perishability_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[DonationStatus] = mapped_column(
        Enum(DonationStatus), nullable=False, default=DonationStatus.AVAILABLE, index=True
    )
    accepted_by: Mapped[int | None] = mapped_column(ForeignKey("actors.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    picked_up_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    donor = relationship("Actor", foreign_keys=[donor_id])
    # Eager: completion rights depend on who accepted
    acceptor = relationship("Actor", foreign_keys=[accepted_by], lazy="selectin")

    @property
    def perishability_window(self) -> timedelta:
        return timedelta(minutes=self.perishability_minutes)

    @property
    def coordinate(self) -> Coordinate | None:
        """Pickup point, or None when missing or out of range."""
        try:
            return Coordinate.of(self.latitude, self.longitude)
        except InvalidCoordinate:
            return None
