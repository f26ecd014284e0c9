from typing import Any

from fastapi import APIRouter, Depends, Request

from natours.core.deps import get_current_user, restrict_to
from natours.models.user import User
from natours.resources import REVIEWS
from natours.services import handler_factory as factory

router = APIRouter(dependencies=[Depends(get_current_user)])

REVIEW_AUTHORS = [Depends(restrict_to("user", "admin"))]


def review_payload(
    request: Request,
    payload: dict[str, Any] = Depends(factory.json_payload),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    data = dict(payload)
    # Nested under /tours/{tour_id}/reviews the tour comes from the path.
    if not data.get("tour_id") and request.path_params.get("tour_id"):
        data["tour_id"] = request.path_params["tour_id"]
    if not data.get("user_id"):
        data["user_id"] = str(user.id)
    return data


router.add_api_route("", factory.get_all(REVIEWS), methods=["GET"])
router.add_api_route(
    "",
    factory.create_one(REVIEWS, payload_dependency=review_payload),
    methods=["POST"],
    dependencies=[Depends(restrict_to("user"))],
)
router.add_api_route("/{id}", factory.get_one(REVIEWS), methods=["GET"])
router.add_api_route("/{id}", factory.update_one(REVIEWS), methods=["PATCH"], dependencies=REVIEW_AUTHORS)
router.add_api_route("/{id}", factory.delete_one(REVIEWS), methods=["DELETE"], dependencies=REVIEW_AUTHORS)
