from fastapi import APIRouter, Depends

from natours.core.deps import restrict_to
from natours.resources import BOOKINGS
from natours.services import handler_factory as factory

router = APIRouter(dependencies=[Depends(restrict_to("admin", "lead-guide"))])

router.add_api_route("", factory.get_all(BOOKINGS), methods=["GET"])
router.add_api_route("", factory.create_one(BOOKINGS), methods=["POST"])
router.add_api_route("/{id}", factory.get_one(BOOKINGS), methods=["GET"])
router.add_api_route("/{id}", factory.update_one(BOOKINGS), methods=["PATCH"])
router.add_api_route("/{id}", factory.delete_one(BOOKINGS), methods=["DELETE"])
