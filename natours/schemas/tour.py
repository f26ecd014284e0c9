from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

Difficulty = Literal["easy", "medium", "difficult"]


class TourIn(BaseModel):
    name: str = Field(min_length=10, max_length=40)
    duration: Optional[int] = Field(default=None, gt=0)
    max_group_size: Optional[int] = Field(default=None, gt=0)
    difficulty: Optional[Difficulty] = None
    ratings_average: float = Field(default=4.5, ge=1, le=5)
    ratings_quantity: int = Field(default=0, ge=0)
    price: float = Field(gt=0)
    price_discount: Optional[float] = Field(default=None, ge=0)
    summary: Optional[str] = Field(default=None, max_length=300)
    description: Optional[str] = None
    image_cover: Optional[str] = None
    images: List[str] = []
    start_dates: List[str] = []
    secret_tour: bool = False

    @field_validator("name", "summary", "description")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_dates")
    @classmethod
    def normalize_start_dates(cls, values: List[str]) -> List[str]:
        normalized = []
        for value in values:
            try:
                parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
            except ValueError:
                raise ValueError(f"start date {value!r} is not an ISO date")
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            normalized.append(parsed.astimezone(timezone.utc).isoformat())
        return normalized

    @model_validator(mode="after")
    def discount_below_price(self):
        if self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError(f"Discount price ({self.price_discount}) should be below regular price")
        return self
