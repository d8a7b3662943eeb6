"""
Test Engine API

Tests for:
- POST /api/engine - aircraft must exist, position unique per aircraft
- GET /api/engine, /api/engine/{id}, /api/engine/aircraft/{aircraft_id}
- PATCH /api/engine/{id} - position re-check
- DELETE /api/engine/{id} - soft delete
"""

import pytest


@pytest.fixture
def aircraft(client, auth_headers):
    response = client.post(
        "/api/aircraft",
        json={"registration": "C-GENG", "aircraft_type": "King Air 350", "engine_type": "PT6A-60A", "engine_qty": 2},
        headers=auth_headers,
    )
    return response.json()


@pytest.fixture
def create_engine(client, auth_headers, aircraft):
    def _create(position=1, **overrides):
        payload = {
            "serial_number": f"PCE-{position}",
            "position": position,
            "model": "PT6A-60A",
            "aircraft_id": aircraft["_id"],
            **overrides,
        }
        response = client.post("/api/engine", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


class TestCreateEngine:

    def test_create(self, create_engine, aircraft):
        engine = create_engine(low_oil_threshold_hours=25)
        assert engine["aircraft_id"] == aircraft["_id"]
        assert engine["position"] == 1
        assert engine["low_oil_threshold_hours"] == 25
        assert engine["average_consumption_rate_per_hour"] is None

    def test_unknown_aircraft(self, client, auth_headers):
        response = client.post(
            "/api/engine",
            json={"serial_number": "X", "position": 1, "model": "M", "aircraft_id": "missing"},
            headers=auth_headers,
        )
        assert response.status_code == 404

    def test_position_taken(self, client, auth_headers, create_engine, aircraft):
        create_engine(position=1)
        response = client.post(
            "/api/engine",
            json={"serial_number": "OTHER", "position": 1, "model": "M", "aircraft_id": aircraft["_id"]},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "DUPLICATE_ENGINE_POSITION"

    def test_position_freed_by_soft_delete(self, client, auth_headers, create_engine):
        engine = create_engine(position=1)
        client.delete(f"/api/engine/{engine['_id']}", headers=auth_headers)
        create_engine(position=1, serial_number="REPLACEMENT")

    def test_position_starts_at_one(self, client, auth_headers, aircraft):
        response = client.post(
            "/api/engine",
            json={"serial_number": "X", "position": 0, "model": "M", "aircraft_id": aircraft["_id"]},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestReadEngines:

    def test_list_includes_aircraft_and_consumptions(self, client, auth_headers, create_engine, aircraft):
        engine = create_engine()
        for day, hours in ((1, 10), (2, 5)):
            client.post(
                "/api/oil-consumptions",
                json={"engine_id": engine["_id"], "date": f"2024-03-0{day}T00:00:00", "flight_hours": hours, "oil_added": 0.5},
                headers=auth_headers,
            )

        response = client.get("/api/engine", headers=auth_headers)
        assert response.status_code == 200
        listed = response.json()[0]
        assert listed["aircraft"]["registration"] == aircraft["registration"]
        dates = [c["date"] for c in listed["oil_consumptions"]]
        assert dates == sorted(dates, reverse=True)

    def test_engines_of_aircraft(self, client, auth_headers, create_engine, aircraft):
        create_engine(position=2)
        create_engine(position=1)
        response = client.get(f"/api/engine/aircraft/{aircraft['_id']}", headers=auth_headers)
        assert response.status_code == 200
        assert [e["position"] for e in response.json()] == [1, 2]

    def test_engines_of_unknown_aircraft(self, client, auth_headers):
        response = client.get("/api/engine/aircraft/missing", headers=auth_headers)
        assert response.status_code == 404

    def test_get_one(self, client, auth_headers, create_engine):
        engine = create_engine()
        response = client.get(f"/api/engine/{engine['_id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["serial_number"] == engine["serial_number"]
        assert response.json()["oil_consumptions"] == []


class TestUpdateEngine:

    def test_move_to_free_position(self, client, auth_headers, create_engine):
        engine = create_engine(position=1)
        response = client.patch(f"/api/engine/{engine['_id']}", json={"position": 2}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["position"] == 2

    def test_move_to_taken_position(self, client, auth_headers, create_engine):
        create_engine(position=1)
        second = create_engine(position=2)
        response = client.patch(f"/api/engine/{second['_id']}", json={"position": 1}, headers=auth_headers)
        assert response.status_code == 400

    def test_update_keeps_own_position(self, client, auth_headers, create_engine):
        engine = create_engine(position=1)
        response = client.patch(
            f"/api/engine/{engine['_id']}",
            json={"position": 1, "active": False},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["active"] is False


class TestDeleteEngine:

    def test_soft_delete(self, client, auth_headers, create_engine):
        engine = create_engine()
        response = client.delete(f"/api/engine/{engine['_id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/api/engine/{engine['_id']}", headers=auth_headers).status_code == 404

    def test_delete_twice(self, client, auth_headers, create_engine):
        engine = create_engine()
        client.delete(f"/api/engine/{engine['_id']}", headers=auth_headers)
        response = client.delete(f"/api/engine/{engine['_id']}", headers=auth_headers)
        assert response.status_code == 404
