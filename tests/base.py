import os
import unittest
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("EMAIL_PROVIDER", "dummy")
os.environ.setdefault("JWT_SECRET", "test-secret")

from natours.db.session import Base, get_db
from natours.main import app
from natours.models.booking import Booking
from natours.models.review import Review
from natours.models.tour import Tour
from natours.models.user import User
from natours.services.auth_service import set_password, sign_token
from natours.services.rate_limit import reset_rate_limiter_for_tests

DEFAULT_PASSWORD = "pass1234"


class ApiTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        Base.metadata.create_all(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        Base.metadata.drop_all(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        with self.SessionLocal() as db:
            for model in (Booking, Review, Tour, User):
                db.execute(delete(model))
            db.commit()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        reset_rate_limiter_for_tests()
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()

    def create_user(self, *, role="user", name=None, email=None, password=DEFAULT_PASSWORD, active=True) -> User:
        suffix = uuid4().hex[:8]
        with self.SessionLocal() as db:
            user = User(
                name=name or f"User {suffix}",
                email=email or f"user-{suffix}@example.com",
                role=role,
                active=active,
            )
            set_password(user, password, is_new=True)
            db.add(user)
            db.commit()
            db.refresh(user)
            db.expunge(user)
        return user

    def auth_headers(self, user: User) -> dict:
        return {"Authorization": f"Bearer {sign_token(user)}"}

    def create_tour(self, **overrides) -> Tour:
        values = {
            "name": f"The Forest Hiker {uuid4().hex[:6]}",
            "duration": 5,
            "max_group_size": 25,
            "difficulty": "easy",
            "price": 397,
            "summary": "Breathtaking hike through the Canadian Banff National Park",
            "start_dates": [],
        }
        values.update(overrides)
        with self.SessionLocal() as db:
            tour = Tour(**values)
            db.add(tour)
            db.commit()
            db.refresh(tour)
            db.expunge(tour)
        return tour

    def create_review(self, tour: Tour, user: User, **overrides) -> Review:
        values = {"review": "Amazing trip!", "rating": 5, "tour_id": tour.id, "user_id": user.id}
        values.update(overrides)
        with self.SessionLocal() as db:
            review = Review(**values)
            db.add(review)
            db.commit()
            db.refresh(review)
            db.expunge(review)
        return review
