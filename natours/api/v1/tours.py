from typing import Any

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.orm import Session

from natours.api.v1 import bookings, reviews
from natours.core.deps import restrict_to
from natours.db.session import get_db
from natours.resources import TOUR_REVIEWS, TOURS
from natours.services import handler_factory as factory
from natours.services.tour_analytics import monthly_plan, tour_stats

router = APIRouter()

TOUR_MANAGERS = [Depends(restrict_to("admin", "lead-guide"))]

TOP_TOURS_QUERY = {
    "limit": "5",
    "sort": "-ratings_average,price",
    "fields": "name,price,ratings_average,summary,difficulty",
}


def alias_top_tours(request: Request) -> dict[str, Any]:
    query_spec = factory.parsed_query_spec(request)
    query_spec.update(TOP_TOURS_QUERY)
    return query_spec


router.add_api_route(
    "/top-5-cheap",
    factory.get_all(TOURS, query_spec_dependency=alias_top_tours),
    methods=["GET"],
    name="top_tours",
)


@router.get("/tour-stats")
def get_tour_stats(db: Session = Depends(get_db)):
    return factory.success(200, {"stats": tour_stats(db)})


@router.get("/monthly-plan/{year}", dependencies=[Depends(restrict_to("admin", "lead-guide", "guide"))])
def get_monthly_plan(year: int = Path(...), db: Session = Depends(get_db)):
    plan = monthly_plan(db, year)
    return factory.success(200, {"plan": plan}, results=len(plan))


router.include_router(reviews.router, prefix="/{tour_id}/reviews")
router.include_router(bookings.router, prefix="/{tour_id}/bookings")

router.add_api_route("", factory.get_all(TOURS), methods=["GET"])
router.add_api_route("", factory.create_one(TOURS), methods=["POST"], dependencies=TOUR_MANAGERS)
router.add_api_route("/{id}", factory.get_one(TOURS, [TOUR_REVIEWS]), methods=["GET"])
router.add_api_route("/{id}", factory.update_one(TOURS), methods=["PATCH"], dependencies=TOUR_MANAGERS)
router.add_api_route("/{id}", factory.delete_one(TOURS), methods=["DELETE"], dependencies=TOUR_MANAGERS)
