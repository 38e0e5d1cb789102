"""Route tests for /api/activities, /api/points, and /api/badges."""

import pytest

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
class TestCreateActivity:
    async def test_requires_auth(self, client):
        response = await client.post("/api/activities", json={})
        assert response.status_code == 401

    async def test_creates_activity(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/activities",
            json={
                "title": "Planted oaks",
                "category": "Tree Plantation",
                "quantity": 3,
                "location": "Porto",
                "date": "2026-04-22",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["impact"] == {"co2_saved_kg": 63.0}
        assert data["points_earned"] == 150.0
        assert data["activity_date"] == "2026-04-22"
        assert data["activity_type"] == "Personal"
        assert data["status"] == "Pending"

    async def test_missing_fields_is_400(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/activities", json={"category": "Tree Plantation", "quantity": 3}
        )

        assert response.status_code == 400
        assert "title" in response.json()["detail"]

    async def test_zero_quantity_is_missing(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/activities",
            json={"title": "None", "category": "Tree Plantation", "quantity": 0},
        )
        assert response.status_code == 400

    async def test_non_numeric_quantity_scores_zero(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/activities",
            json={"title": "Trees", "category": "Tree Plantation", "quantity": "lots"},
        )

        assert response.status_code == 201
        assert response.json()["points_earned"] == 0.0

    async def test_boolean_quantity_scores_zero(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/activities",
            json={"title": "Trees", "category": "Tree Plantation", "quantity": True},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["quantity"] == 0.0
        assert data["impact"] == {"co2_saved_kg": 0.0}
        assert data["points_earned"] == 0.0

    async def test_false_quantity_is_missing(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/activities",
            json={"title": "Trees", "category": "Tree Plantation", "quantity": False},
        )
        assert response.status_code == 400

    async def test_numeric_string_quantity_is_parsed(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/activities",
            json={"title": "Trees", "category": "Tree Plantation", "quantity": "3"},
        )

        assert response.status_code == 201
        assert response.json()["points_earned"] == 150.0


@pytest.mark.asyncio
class TestReadEndpoints:
    async def _log(self, client, category: str, quantity: float, title: str = "x"):
        response = await client.post(
            "/api/activities",
            json={"title": title, "category": category, "quantity": quantity},
        )
        assert response.status_code == 201

    async def test_points_and_badges(self, authenticated_client):
        await self._log(authenticated_client, "Tree Plantation", 3)
        await self._log(authenticated_client, "Waste Reduction", 2)

        points = await authenticated_client.get("/api/points")
        badges = await authenticated_client.get("/api/badges")

        assert points.json() == {"total_points": 170.0}
        assert badges.json() == {"badges": ["Beginner", "100 Points Club"]}

    async def test_totals(self, authenticated_client):
        await self._log(authenticated_client, "Tree Plantation", 1)
        await self._log(authenticated_client, "Water Conservation", 25)

        response = await authenticated_client.get("/api/activities/totals")

        assert response.status_code == 200
        assert response.json() == {
            "today_activities": 2,
            "total_activities": 2,
            "total_impact": {"co2_saved_kg": 21.0, "water_saved_l": 25.0},
        }

    async def test_list(self, authenticated_client):
        await self._log(authenticated_client, "Energy Saving", 1, title="one")
        await self._log(authenticated_client, "Energy Saving", 2, title="two")

        response = await authenticated_client.get("/api/activities")

        assert response.status_code == 200
        assert {a["title"] for a in response.json()} == {"one", "two"}

    async def test_new_participant_has_nothing(self, authenticated_client):
        points = await authenticated_client.get("/api/points")
        badges = await authenticated_client.get("/api/badges")

        assert points.json() == {"total_points": 0.0}
        assert badges.json() == {"badges": []}
