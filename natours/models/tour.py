import re
import unicodedata

from sqlalchemy import JSON, Boolean, Float, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from natours.db.session import Base
from natours.models.common import CreatedAtMixin, UUIDMixin


def slugify(value: str) -> str:
    text = unicodedata.normalize("NFKD", str(value or "")).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-zA-Z0-9\s-]", "", text).strip().lower()
    return re.sub(r"[\s_-]+", "-", text)


class Tour(Base, UUIDMixin, CreatedAtMixin):
    __tablename__ = "tours"
    name: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    slug: Mapped[str | None] = mapped_column(String(80), nullable=True, index=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_group_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String(20), nullable=True)
    ratings_average: Mapped[float] = mapped_column(Float, default=4.5, nullable=False)
    ratings_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    price_discount: Mapped[float | None] = mapped_column(Float, nullable=True)
    summary: Mapped[str | None] = mapped_column(String(300), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_cover: Mapped[str | None] = mapped_column(String(200), nullable=True)
    images: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    start_dates: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    secret_tour: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


@event.listens_for(Tour, "before_insert")
@event.listens_for(Tour, "before_update")
def _set_slug(mapper, connection, target: Tour) -> None:
    target.slug = slugify(target.name)
