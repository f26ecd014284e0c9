from natours.models.booking import Booking
from natours.models.review import Review
from natours.models.tour import Tour
from natours.models.user import User
from natours.schemas.booking import BookingIn
from natours.schemas.review import ReviewIn
from natours.schemas.tour import TourIn
from natours.schemas.user import SignupIn, UserDocument
from natours.services.resource import PopulateSpec, Resource

USER_HIDDEN_FIELDS = frozenset({"password", "password_reset_token", "password_reset_expires", "active"})

USERS = Resource(
    model=User,
    label="user",
    create_schema=SignupIn,
    document_schema=UserDocument,
    hidden_fields=USER_HIDDEN_FIELDS,
    base_criteria={"active": {"$ne": False}},
)

TOURS = Resource(
    model=Tour,
    label="tour",
    create_schema=TourIn,
    base_criteria={"secret_tour": {"$ne": True}},
)

REVIEWS = Resource(
    model=Review,
    label="review",
    create_schema=ReviewIn,
    parent_params={"tour_id": "tour_id"},
    auto_populate=(PopulateSpec(path="user", resource=USERS, local_field="user_id", select="name photo"),),
)

BOOKINGS = Resource(
    model=Booking,
    label="booking",
    create_schema=BookingIn,
    parent_params={"tour_id": "tour_id"},
    auto_populate=(
        PopulateSpec(path="user", resource=USERS, local_field="user_id", select="name email"),
        PopulateSpec(path="tour", resource=TOURS, local_field="tour_id", select="name"),
    ),
)

TOUR_REVIEWS = PopulateSpec(path="reviews", resource=REVIEWS, local_field="id", foreign_field="tour_id", many=True)
