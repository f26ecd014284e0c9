import uuid
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ReviewIn(BaseModel):
    review: str = Field(min_length=1)
    rating: Optional[float] = Field(default=None, ge=1, le=5)
    tour_id: uuid.UUID
    user_id: uuid.UUID

    @field_validator("review")
    @classmethod
    def review_not_blank(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("Review can not be empty!")
        return text
