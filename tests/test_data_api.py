"""Integration tests for the generated data API."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from greenspace.web import impact_router

CANADA_TOTALS = {
    "people_impacted": 250,
    "people_impacted_goal": 1000,
    "clean_air_produced_m2": 50.0,
    "clean_air_produced_goal_m2": 100.0,
    "area_affected_m2": 10.0,
    "area_affected_goal_m2": 10.0,
    "km_offset": 0.0,
    "km_offset_goal": 100.0,
}


def _create_space(client: TestClient, user: dict, title: str = "Speed River Meadow", **extra) -> dict:
    resp = client.post(
        "/api/data/green-spaces",
        json={"title": title, "user_id": user["user_id"], **extra},
        headers=user["headers"],
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestAuthorization:
    def test_no_credentials(self, client: TestClient) -> None:
        resp = client.get("/api/data/green-spaces")
        assert resp.status_code == 401

    def test_invalid_api_key(self, client: TestClient) -> None:
        resp = client.get("/api/data/green-spaces", headers={"x-api-key": "gs-wrong"})
        assert resp.status_code == 401

    def test_api_key_access(self, client: TestClient, api_key_headers: dict) -> None:
        resp = client.get("/api/data/green-spaces", headers=api_key_headers)
        assert resp.status_code == 200
        assert resp.json() == {"items": [], "next_token": None}

    def test_canada_progress_rejects_bearer_only(self, client: TestClient, jane: dict) -> None:
        resp = client.get("/api/data/canada-progress", headers=jane["headers"])
        assert resp.status_code == 403

    def test_canada_progress_with_api_key(self, client: TestClient, api_key_headers: dict) -> None:
        resp = client.post("/api/data/canada-progress", json=CANADA_TOTALS, headers=api_key_headers)
        assert resp.status_code == 201
        assert resp.json()["owner"] is None


class TestCrud:
    def test_create_sets_owner(self, client: TestClient, jane: dict) -> None:
        space = _create_space(client, jane, location={"lat": 43.54, "long": -80.25})
        assert space["owner"] == jane["user_id"]
        assert space["status"] == "DRAFT"
        assert space["location"] == {"lat": 43.54, "long": -80.25}

    def test_get(self, client: TestClient, jane: dict) -> None:
        space = _create_space(client, jane)
        resp = client.get(f"/api/data/green-spaces/{space['id']}", headers=jane["headers"])
        assert resp.status_code == 200
        assert resp.json()["title"] == "Speed River Meadow"

    def test_get_missing(self, client: TestClient, jane: dict) -> None:
        resp = client.get("/api/data/green-spaces/nope", headers=jane["headers"])
        assert resp.status_code == 404

    def test_create_invalid_payload(self, client: TestClient, jane: dict) -> None:
        resp = client.post(
            "/api/data/zones",
            json={"name": "Row", "type": "FOREST", "green_space_id": "g1"},
            headers=jane["headers"],
        )
        assert resp.status_code == 422
        assert resp.json()["detail"][0]["loc"] == ["type"]

    def test_update(self, client: TestClient, jane: dict) -> None:
        space = _create_space(client, jane)
        resp = client.patch(
            f"/api/data/green-spaces/{space['id']}",
            json={"status": "SUBMITTED", "people_count": 120},
            headers=jane["headers"],
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "SUBMITTED"
        assert data["people_count"] == 120
        assert data["created_at"] == space["created_at"]

    def test_update_clearing_required_field(self, client: TestClient, jane: dict) -> None:
        space = _create_space(client, jane)
        resp = client.patch(
            f"/api/data/green-spaces/{space['id']}", json={"title": None}, headers=jane["headers"]
        )
        assert resp.status_code == 422

    def test_delete(self, client: TestClient, jane: dict) -> None:
        space = _create_space(client, jane)
        resp = client.delete(f"/api/data/green-spaces/{space['id']}", headers=jane["headers"])
        assert resp.status_code == 200
        assert resp.json()["id"] == space["id"]
        resp = client.get(f"/api/data/green-spaces/{space['id']}", headers=jane["headers"])
        assert resp.status_code == 404


class TestOwnerScoping:
    def test_other_owner_cannot_read_or_write(self, client: TestClient, jane: dict, bob: dict) -> None:
        space = _create_space(client, jane)
        url = f"/api/data/green-spaces/{space['id']}"
        assert client.get(url, headers=bob["headers"]).status_code == 404
        assert client.patch(url, json={"title": "Mine"}, headers=bob["headers"]).status_code == 404
        assert client.delete(url, headers=bob["headers"]).status_code == 404
        assert client.get(url, headers=jane["headers"]).json()["title"] == "Speed River Meadow"

    def test_list_is_scoped(self, client: TestClient, jane: dict, bob: dict, api_key_headers: dict) -> None:
        _create_space(client, jane, "Jane's")
        _create_space(client, bob, "Bob's")
        mine = client.get("/api/data/green-spaces", headers=jane["headers"]).json()
        assert [s["title"] for s in mine["items"]] == ["Jane's"]
        everything = client.get("/api/data/green-spaces", headers=api_key_headers).json()
        assert len(everything["items"]) == 2

    def test_api_key_can_read_owned_records(self, client: TestClient, jane: dict, api_key_headers: dict) -> None:
        space = _create_space(client, jane)
        resp = client.get(f"/api/data/green-spaces/{space['id']}", headers=api_key_headers)
        assert resp.status_code == 200


class TestListing:
    def test_filter_by_index(self, client: TestClient, jane: dict) -> None:
        _create_space(client, jane, "Draft")
        _create_space(client, jane, "Done", status="SUBMITTED")
        resp = client.get(
            "/api/data/green-spaces", params={"status": "SUBMITTED"}, headers=jane["headers"]
        )
        assert [s["title"] for s in resp.json()["items"]] == ["Done"]

    def test_filter_by_non_index_field(self, client: TestClient, jane: dict) -> None:
        resp = client.get(
            "/api/data/green-spaces", params={"title": "Draft"}, headers=jane["headers"]
        )
        assert resp.status_code == 400
        assert "cannot be filtered by title" in resp.json()["detail"]

    def test_pagination(self, client: TestClient, jane: dict) -> None:
        for i in range(3):
            _create_space(client, jane, f"Space {i}")
        first = client.get(
            "/api/data/green-spaces", params={"limit": 2}, headers=jane["headers"]
        ).json()
        assert len(first["items"]) == 2
        second = client.get(
            "/api/data/green-spaces",
            params={"limit": 2, "next_token": first["next_token"]},
            headers=jane["headers"],
        ).json()
        assert len(second["items"]) == 1
        assert second["next_token"] is None

    def test_bad_next_token(self, client: TestClient, jane: dict) -> None:
        resp = client.get(
            "/api/data/green-spaces", params={"next_token": "garbage!"}, headers=jane["headers"]
        )
        assert resp.status_code == 400


class TestRelations:
    def test_user_relations(self, client: TestClient, jane: dict) -> None:
        folder = client.post(
            "/api/data/project-folders",
            json={"name": "Riverside", "user_id": jane["user_id"]},
            headers=jane["headers"],
        ).json()
        _create_space(client, jane, project_folder_id=folder["id"])
        _create_space(client, jane, "Loose space")

        user_url = f"/api/data/users/{jane['user_id']}"
        spaces = client.get(f"{user_url}/green-spaces", headers=jane["headers"]).json()
        assert len(spaces["items"]) == 2
        folders = client.get(f"{user_url}/project-folders", headers=jane["headers"]).json()
        assert [f["name"] for f in folders["items"]] == ["Riverside"]
        in_folder = client.get(
            f"/api/data/project-folders/{folder['id']}/green-spaces", headers=jane["headers"]
        ).json()
        assert [s["title"] for s in in_folder["items"]] == ["Speed River Meadow"]

    def test_has_one_and_belongs_to(self, client: TestClient, jane: dict) -> None:
        user_url = f"/api/data/users/{jane['user_id']}"
        assert client.get(f"{user_url}/user-impact", headers=jane["headers"]).json() is None

        impact = client.post(
            "/api/data/user-impacts",
            json={
                "people_impacted_goal": 100,
                "clean_air_produced_goal_m2": 10.0,
                "area_affected_goal_m2": 10.0,
                "km_offset_goal": 10.0,
                "user_id": jane["user_id"],
            },
            headers=jane["headers"],
        ).json()
        assert client.get(f"{user_url}/user-impact", headers=jane["headers"]).json()["id"] == impact["id"]

        owner = client.get(
            f"/api/data/user-impacts/{impact['id']}/user", headers=jane["headers"]
        ).json()
        assert owner["email"] == "jane.smith@example.org"

    def test_zones_of_green_space(self, client: TestClient, jane: dict) -> None:
        space = _create_space(client, jane)
        for name, kind in [("Lawn", "LAWN"), ("Maples", "TREE")]:
            client.post(
                "/api/data/zones",
                json={"name": name, "type": kind, "green_space_id": space["id"]},
                headers=jane["headers"],
            )
        zones = client.get(
            f"/api/data/green-spaces/{space['id']}/zones", headers=jane["headers"]
        ).json()
        assert sorted(z["name"] for z in zones["items"]) == ["Lawn", "Maples"]
        parent = client.get(
            f"/api/data/zones/{zones['items'][0]['id']}/green-space", headers=jane["headers"]
        ).json()
        assert parent["id"] == space["id"]

    def test_belongs_to_unset(self, client: TestClient, jane: dict) -> None:
        space = _create_space(client, jane)
        resp = client.get(
            f"/api/data/green-spaces/{space['id']}/project-folder", headers=jane["headers"]
        )
        assert resp.status_code == 200
        assert resp.json() is None

    def test_unknown_relation(self, client: TestClient, jane: dict) -> None:
        space = _create_space(client, jane)
        resp = client.get(f"/api/data/green-spaces/{space['id']}/trees", headers=jane["headers"])
        assert resp.status_code == 404


def test_describe_schema(client: TestClient):
    resp = client.get("/api/data")
    assert resp.status_code == 200
    models = {m["name"]: m for m in resp.json()}
    assert models["CanadaProgress"]["authorization"] == ["public_api_key"]
    assert models["GreenSpace"]["indexes"] == ["user_id", "status", "project_folder_id"]
    assert {"name": "zones", "kind": "has_many", "target": "Zone", "foreign_key": "green_space_id"} in models["GreenSpace"]["relations"]


class TestImpactAPI:
    def test_canada_progress_summary(self, client: TestClient, api_key_headers: dict) -> None:
        assert client.get("/api/impact/canada", headers=api_key_headers).status_code == 404
        client.post("/api/data/canada-progress", json=CANADA_TOTALS, headers=api_key_headers)
        resp = client.get("/api/impact/canada", headers=api_key_headers)
        assert resp.status_code == 200
        percents = [m["percent"] for m in resp.json()["metrics"]]
        assert percents == [25.0, 50.0, 100.0, 0.0]

    def test_canada_progress_reads_every_page(
        self, client: TestClient, app, api_key_headers: dict, monkeypatch
    ) -> None:
        monkeypatch.setattr(impact_router, "_SCAN_PAGE_SIZE", 2)
        store = app.state.record_store
        ids = [
            store.create("CanadaProgress", {**CANADA_TOTALS, "people_impacted": 100 * i}).id
            for i in range(5)
        ]
        # the last page holds the most recently updated totals
        _, table = store._table("CanadaProgress")
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        for i, record_id in enumerate(ids):
            table[record_id] = table[record_id].model_copy(
                update={"updated_at": base + timedelta(minutes=i)}
            )

        resp = client.get("/api/impact/canada", headers=api_key_headers)
        assert resp.status_code == 200
        assert resp.json()["record_id"] == ids[-1]
        assert resp.json()["metrics"][0]["value"] == 400

    def test_user_progress(self, client: TestClient, jane: dict, bob: dict) -> None:
        client.post(
            "/api/data/user-impacts",
            json={
                "people_impacted": 50,
                "people_impacted_goal": 100,
                "clean_air_produced_goal_m2": 10.0,
                "area_affected_goal_m2": 10.0,
                "km_offset_goal": 10.0,
                "user_id": jane["user_id"],
            },
            headers=jane["headers"],
        )
        resp = client.get(f"/api/impact/users/{jane['user_id']}", headers=jane["headers"])
        assert resp.status_code == 200
        assert resp.json()["metrics"][0]["percent"] == 50.0
        other = client.get(f"/api/impact/users/{jane['user_id']}", headers=bob["headers"])
        assert other.status_code == 404
