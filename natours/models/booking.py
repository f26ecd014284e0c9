import uuid

from sqlalchemy import Boolean, Float, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from natours.db.session import Base
from natours.models.common import CreatedAtMixin, UUIDMixin


class Booking(Base, UUIDMixin, CreatedAtMixin):
    __tablename__ = "bookings"
    tour_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    paid: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
