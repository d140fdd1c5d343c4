"""Tests for the league activity configuration routes."""


LEAGUE = "lg-1"
BASE = f"/api/v1/leagues/{LEAGUE}/activities"


class TestListActivities:
    def test_member_lists_activities(self, client, auth_headers):
        response = client.get(BASE, headers=auth_headers("p-a1"))
        assert response.status_code == 200
        swim = next(a for a in response.json()["activities"] if a["activity_id"] == "swimming")
        assert swim["min_value"] == 30
        assert "senior" in swim["age_group_overrides"]

    def test_unknown_league(self, client, auth_headers):
        response = client.get("/api/v1/leagues/nope/activities", headers=auth_headers("host-1"))
        assert response.status_code == 404


class TestFrequency:
    def test_host_updates_cap(self, client, auth_headers):
        response = client.patch(
            BASE,
            json={"activity_id": "run", "frequency": 3, "frequency_type": "weekly"},
            headers=auth_headers("host-1"),
        )
        assert response.status_code == 200
        assert response.json()["frequency"] == 3

    def test_out_of_range_cap(self, client, auth_headers):
        response = client.patch(
            BASE,
            json={"activity_id": "run", "frequency": 30, "frequency_type": "monthly"},
            headers=auth_headers("host-1"),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "FREQUENCY_VALIDATION_ERROR"

    def test_governor_forbidden(self, client, auth_headers):
        response = client.patch(
            BASE,
            json={"activity_id": "run", "frequency": 3},
            headers=auth_headers("gov-1"),
        )
        assert response.status_code == 403


class TestMinimums:
    def test_save_and_reset(self, client, auth_headers):
        body = {
            "min_value": 20,
            "max_value": 90,
            "age_group_overrides": {"over65": {"age_min": 65, "min_value": 10, "max_value": 90}},
        }
        saved = client.put(f"{BASE}/cycling/minimums", json=body, headers=auth_headers("gov-1"))
        assert saved.status_code == 200
        assert saved.json()["age_group_overrides"]["over65"]["min_value"] == 10

        reset = client.delete(f"{BASE}/cycling/minimums", headers=auth_headers("host-1"))
        assert reset.json()["min_value"] is None
        assert reset.json()["age_group_overrides"] == {}

    def test_overlapping_overrides(self, client, auth_headers):
        body = {
            "age_group_overrides": {
                "a": {"age_min": 60},
                "b": {"age_min": 70},
            },
        }
        response = client.put(f"{BASE}/cycling/minimums", json=body, headers=auth_headers("host-1"))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "THRESHOLD_CONFIG_ERROR"

    def test_default_minimums(self, client, auth_headers):
        response = client.post(f"{BASE}/default-minimums", headers=auth_headers("host-1"))
        assert [a["activity_id"] for a in response.json()["activities"]] == ["steps"]
