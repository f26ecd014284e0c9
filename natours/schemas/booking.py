import uuid

from pydantic import BaseModel, Field


class BookingIn(BaseModel):
    tour_id: uuid.UUID
    user_id: uuid.UUID
    price: float = Field(gt=0)
    paid: bool = True
