"""
Load or wipe the development data set.

    python -m natours.scripts.import_dev_data --import dev-data/
    python -m natours.scripts.import_dev_data --delete

The import directory may hold ``tours.json``, ``users.json`` and
``reviews.json`` (each a JSON list, snake_case fields). Records may carry an
``id`` of any form; reviews point at their tour and user through ``tour`` and
``user`` using those ids, and fresh UUIDs are assigned on insert.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session

from natours.db.session import SessionLocal
from natours.models.booking import Booking
from natours.models.review import Review
from natours.models.tour import Tour
from natours.models.user import User
from natours.resources import REVIEWS, TOURS, USERS
from natours.schemas.review import ReviewIn
from natours.schemas.tour import TourIn
from natours.schemas.user import UserDocument
from natours.services.auth_service import set_password


def _read_list(directory: Path, name: str) -> list[dict[str, Any]]:
    path = directory / name
    if not path.exists():
        return []
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list")
    return data


def _source_id(item: dict[str, Any]) -> str:
    return str(item.get("id") or item.get("_id") or "").strip()


def import_data(db: Session, directory: Path) -> tuple[int, int, int]:
    tour_ids: dict[str, Any] = {}
    user_ids: dict[str, Any] = {}

    tours = _read_list(directory, "tours.json")
    for item in tours:
        tour = Tour(**TOURS.column_values(TourIn.model_validate(item)))
        db.add(tour)
        db.flush()
        if _source_id(item):
            tour_ids[_source_id(item)] = tour.id

    users = _read_list(directory, "users.json")
    for item in users:
        password = str(item.get("password") or "")
        if not password:
            raise ValueError(f"user {item.get('email')!r} has no password")
        user = User(**USERS.column_values(UserDocument.model_validate(item)))
        set_password(user, password, is_new=True)
        db.add(user)
        db.flush()
        if _source_id(item):
            user_ids[_source_id(item)] = user.id

    reviews = _read_list(directory, "reviews.json")
    for item in reviews:
        payload = {
            **item,
            "tour_id": item.get("tour_id") or tour_ids.get(str(item.get("tour") or "")),
            "user_id": item.get("user_id") or user_ids.get(str(item.get("user") or "")),
        }
        db.add(Review(**REVIEWS.column_values(ReviewIn.model_validate(payload))))

    db.commit()
    return len(tours), len(users), len(reviews)


def delete_data(db: Session) -> None:
    for model in (Review, Booking, Tour, User):
        db.execute(delete(model))
    db.commit()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Load or wipe the Natours development data.")
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--import", dest="directory", metavar="DIR", type=Path, help="directory holding the JSON files")
    action.add_argument("--delete", action="store_true", help="remove every review, booking, tour and user")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if args.delete:
            delete_data(db)
            print("Data successfully deleted!")
        else:
            tours, users, reviews = import_data(db, args.directory)
            print(f"Data successfully loaded: tours={tours}, users={users}, reviews={reviews}")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
