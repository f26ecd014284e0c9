from uuid import UUID, uuid4

from tests.base import ApiTestCase


class ToursApiTests(ApiTestCase):
    def _seed(self):
        self.forest = self.create_tour(name="The Forest Hiker", price=397, difficulty="easy", duration=5, ratings_average=4.7)
        self.sea = self.create_tour(name="The Sea Explorer", price=497, difficulty="medium", duration=7, ratings_average=4.8)
        self.snow = self.create_tour(name="The Snow Adventurer", price=997, difficulty="difficult", duration=4, ratings_average=4.5)
        self.city = self.create_tour(name="The City Wanderer", price=1197, difficulty="easy", duration=9, ratings_average=4.6)
        self.park = self.create_tour(name="The Park Camper", price=1497, difficulty="medium", duration=10, ratings_average=4.9)

    def _names(self, response):
        return [doc["name"] for doc in response.json()["data"]["data"]]

    def test_get_all_envelope_hides_version(self):
        self._seed()
        response = self.client.get("/api/v1/tours")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "success")
        self.assertEqual(body["results"], 5)
        self.assertEqual(len(body["data"]["data"]), 5)
        for doc in body["data"]["data"]:
            self.assertNotIn("version", doc)
            self.assertIn("slug", doc)

    def test_filter_with_comparison_operators(self):
        self._seed()
        response = self.client.get("/api/v1/tours?price[gte]=450&price[lt]=1200&sort=price")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._names(response), ["The Sea Explorer", "The Snow Adventurer", "The City Wanderer"])

    def test_equality_filter_and_repeated_whitelisted_key(self):
        self._seed()
        easy = self.client.get("/api/v1/tours?difficulty=easy&sort=price")
        self.assertEqual(self._names(easy), ["The Forest Hiker", "The City Wanderer"])

        either = self.client.get("/api/v1/tours?duration=5&duration=9&sort=-price")
        self.assertEqual(self._names(either), ["The City Wanderer", "The Forest Hiker"])

    def test_repeated_sort_keeps_last_value(self):
        self._seed()
        response = self.client.get("/api/v1/tours?sort=price&sort=-price")
        self.assertEqual(self._names(response)[0], "The Park Camper")

    def test_sort_with_multiple_fields(self):
        self._seed()
        response = self.client.get("/api/v1/tours?sort=difficulty,-price")
        self.assertEqual(
            self._names(response),
            ["The Snow Adventurer", "The City Wanderer", "The Forest Hiker", "The Park Camper", "The Sea Explorer"],
        )

    def test_field_limiting_keeps_id(self):
        self._seed()
        response = self.client.get("/api/v1/tours?fields=name,price&sort=price&limit=1")
        self.assertEqual(response.status_code, 200)
        doc = response.json()["data"]["data"][0]
        self.assertEqual(set(doc), {"id", "name", "price"})

    def test_mixed_projection_is_rejected(self):
        self._seed()
        response = self.client.get("/api/v1/tours?fields=name,-price")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["status"], "fail")

    def test_pagination(self):
        self._seed()
        page_two = self.client.get("/api/v1/tours?sort=price&page=2&limit=2")
        self.assertEqual(self._names(page_two), ["The Snow Adventurer", "The City Wanderer"])

        past_end = self.client.get("/api/v1/tours?page=10&limit=2")
        self.assertEqual(past_end.status_code, 200)
        self.assertEqual(past_end.json()["results"], 0)

    def test_huge_page_and_limit_values(self):
        self._seed()
        far_page = self.client.get("/api/v1/tours?page=100000000000000000&limit=100")
        self.assertEqual(far_page.status_code, 200)
        self.assertEqual(far_page.json()["results"], 0)

        huge_limit = self.client.get(f"/api/v1/tours?limit={10**20}")
        self.assertEqual(huge_limit.status_code, 200)
        self.assertEqual(huge_limit.json()["results"], 5)

    def test_invalid_filter_value_is_400(self):
        self._seed()
        response = self.client.get("/api/v1/tours?price[gte]=cheap")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"status": "fail", "message": "Invalid price: cheap."})

    def test_unknown_filter_field_is_ignored(self):
        self._seed()
        response = self.client.get("/api/v1/tours?colour=blue")
        self.assertEqual(response.json()["results"], 5)

    def test_top_five_cheap_alias(self):
        self._seed()
        self.create_tour(name="The Northern Lights", price=1600, ratings_average=4.9)
        response = self.client.get("/api/v1/tours/top-5-cheap")
        self.assertEqual(response.status_code, 200)
        docs = response.json()["data"]["data"]
        self.assertEqual(len(docs), 5)
        self.assertEqual([doc["name"] for doc in docs[:2]], ["The Park Camper", "The Northern Lights"])
        self.assertEqual(set(docs[0]), {"id", "name", "price", "ratings_average", "summary", "difficulty"})

    def test_secret_tours_are_never_found(self):
        self._seed()
        secret = self.create_tour(name="The Secret Hideaway", secret_tour=True)
        listed = self.client.get("/api/v1/tours?secret_tour=true")
        self.assertEqual(listed.json()["results"], 0)
        self.assertEqual(self.client.get(f"/api/v1/tours/{secret.id}").status_code, 404)

    def test_get_one_populates_reviews(self):
        self._seed()
        author = self.create_user(name="Lourdes Browning")
        self.create_review(self.forest, author, review="Loved every minute", rating=5)

        response = self.client.get(f"/api/v1/tours/{self.forest.id}")
        self.assertEqual(response.status_code, 200)
        doc = response.json()["data"]["data"]
        self.assertEqual(doc["name"], "The Forest Hiker")
        self.assertEqual(len(doc["reviews"]), 1)
        self.assertEqual(doc["reviews"][0]["review"], "Loved every minute")

    def test_get_one_missing_and_malformed_ids(self):
        missing = self.client.get(f"/api/v1/tours/{uuid4()}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json(), {"status": "fail", "message": "No tour found with that ID"})

        malformed = self.client.get("/api/v1/tours/not-an-id")
        self.assertEqual(malformed.status_code, 400)
        self.assertEqual(malformed.json()["message"], "Invalid id: not-an-id.")

    def test_create_requires_tour_manager(self):
        payload = {"name": "The Desert Crossing", "price": 650, "difficulty": "medium"}
        self.assertEqual(self.client.post("/api/v1/tours", json=payload).status_code, 401)

        guide = self.create_user(role="guide")
        forbidden = self.client.post("/api/v1/tours", json=payload, headers=self.auth_headers(guide))
        self.assertEqual(forbidden.status_code, 403)
        self.assertEqual(forbidden.json()["message"], "You do not have permission to perform this action")

    def test_create_update_delete_cycle(self):
        lead = self.create_user(role="lead-guide")
        headers = self.auth_headers(lead)

        created = self.client.post(
            "/api/v1/tours",
            headers=headers,
            json={"name": "The Desert Crossing", "price": 650, "difficulty": "medium", "start_dates": ["2027-03-01T09:00:00Z"]},
        )
        self.assertEqual(created.status_code, 201)
        doc = created.json()["data"]["data"]
        tour_id = doc["id"]
        UUID(tour_id)
        self.assertEqual(doc["slug"], "the-desert-crossing")
        self.assertEqual(doc["ratings_average"], 4.5)
        self.assertFalse(doc["secret_tour"])

        updated = self.client.patch(f"/api/v1/tours/{tour_id}", headers=headers, json={"price": 700, "name": "The Desert Crossing II"})
        self.assertEqual(updated.status_code, 200)
        updated_doc = updated.json()["data"]["data"]
        self.assertEqual(updated_doc["price"], 700)
        self.assertEqual(updated_doc["slug"], "the-desert-crossing-ii")
        self.assertEqual(updated_doc["difficulty"], "medium")

        deleted = self.client.delete(f"/api/v1/tours/{tour_id}", headers=headers)
        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(deleted.content, b"")
        self.assertEqual(self.client.get(f"/api/v1/tours/{tour_id}").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/v1/tours/{tour_id}", headers=headers).status_code, 404)

    def test_created_tour_reads_back_with_defaults(self):
        lead = self.create_user(role="lead-guide")
        payload = {
            "name": "The Glacier Trekker",
            "price": 820,
            "difficulty": "difficult",
            "duration": 6,
            "max_group_size": 12,
            "summary": "Ice, rock and long northern days",
        }
        created = self.client.post("/api/v1/tours", headers=self.auth_headers(lead), json=payload)
        self.assertEqual(created.status_code, 201)
        tour_id = created.json()["data"]["data"]["id"]

        fetched = self.client.get(f"/api/v1/tours/{tour_id}")
        self.assertEqual(fetched.status_code, 200)
        doc = fetched.json()["data"]["data"]
        self.assertEqual(doc["id"], tour_id)
        for field, value in payload.items():
            self.assertEqual(doc[field], value)
        self.assertEqual(doc["slug"], "the-glacier-trekker")
        self.assertEqual(doc["ratings_average"], 4.5)
        self.assertEqual(doc["ratings_quantity"], 0)
        self.assertFalse(doc["secret_tour"])
        self.assertEqual(doc["reviews"], [])

    def test_create_validates_payload(self):
        admin = self.create_user(role="admin")
        headers = self.auth_headers(admin)

        too_short = self.client.post("/api/v1/tours", headers=headers, json={"name": "Short", "price": 100})
        self.assertEqual(too_short.status_code, 400)
        self.assertTrue(too_short.json()["message"].startswith("Invalid input data."))

        bad_discount = self.client.post(
            "/api/v1/tours", headers=headers, json={"name": "The Costly Discount", "price": 100, "price_discount": 150}
        )
        self.assertEqual(bad_discount.status_code, 400)

    def test_duplicate_name_is_400(self):
        admin = self.create_user(role="admin")
        self.create_tour(name="The Forest Hiker")
        response = self.client.post(
            "/api/v1/tours", headers=self.auth_headers(admin), json={"name": "The Forest Hiker", "price": 300}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Duplicate field value. Please use another value!")

    def test_update_validates_merged_record(self):
        admin = self.create_user(role="admin")
        tour = self.create_tour(name="The Discounted Trip", price=500, price_discount=100)
        response = self.client.patch(f"/api/v1/tours/{tour.id}", headers=self.auth_headers(admin), json={"price": 50})
        self.assertEqual(response.status_code, 400)

    def test_tour_stats(self):
        self._seed()
        self.create_tour(name="The Low Rated Tour", price=50, difficulty="easy", ratings_average=3.0)
        response = self.client.get("/api/v1/tours/tour-stats")
        self.assertEqual(response.status_code, 200)
        stats = response.json()["data"]["stats"]
        self.assertEqual({item["difficulty"] for item in stats}, {"EASY", "MEDIUM", "DIFFICULT"})
        self.assertEqual(stats[0]["difficulty"], "EASY")
        easy = stats[0]
        self.assertEqual(easy["num_tours"], 2)
        self.assertEqual(easy["min_price"], 397)
        self.assertEqual(easy["max_price"], 1197)
        self.assertEqual(easy["avg_price"], 797)

    def test_monthly_plan(self):
        self.create_tour(name="The Spring Tour", start_dates=["2027-04-10T09:00:00+00:00", "2027-07-01T09:00:00+00:00"])
        self.create_tour(name="The Summer Tour", start_dates=["2027-07-15T09:00:00+00:00", "2028-07-01T09:00:00+00:00"])
        guide = self.create_user(role="guide")

        self.assertEqual(self.client.get("/api/v1/tours/monthly-plan/2027").status_code, 401)
        user = self.create_user()
        self.assertEqual(
            self.client.get("/api/v1/tours/monthly-plan/2027", headers=self.auth_headers(user)).status_code, 403
        )

        response = self.client.get("/api/v1/tours/monthly-plan/2027", headers=self.auth_headers(guide))
        self.assertEqual(response.status_code, 200)
        plan = response.json()["data"]["plan"]
        self.assertEqual(plan[0], {"month": 7, "num_tour_starts": 2, "tours": ["The Spring Tour", "The Summer Tour"]})
        self.assertEqual(plan[1]["month"], 4)
        self.assertEqual(response.json()["results"], 2)

    def test_unknown_route_is_404_envelope(self):
        response = self.client.get("/api/v1/nothing-here")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Can't find /api/v1/nothing-here on this server!")
