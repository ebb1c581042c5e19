#!/usr/bin/env python3
"""Seed demo green space data into a running Green Space Tracker backend.

Usage:
    # Start the backend first:
    uvicorn greenspace.web.app:create_app --factory --port 8080

    # Seed demo data:
    python3 scripts/seed_demo_data.py

    # Seed against a different host, as a different fixture user:
    python3 scripts/seed_demo_data.py --base-url http://localhost:9000 \
        --email bob.johnson@example.org --password 'Seedling!42'

Records are created through the public data API, signed in as one of the
identity fixture users so they are owned by that account. National
progress totals are written with the public API key from
``/api/client-config``.

Data created:
    - 1 CanadaProgress record
    - 2 project folders
    - 4 green spaces (draft and submitted) with a handful of zones
    - 1 UserImpact record for the signed-in user
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import date, datetime, timezone

import httpx

DEFAULT_BASE_URL = "http://localhost:8080"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def api(
    client: httpx.Client,
    method: str,
    path: str,
    *,
    json: dict | None = None,
    params: dict | None = None,
    token: str | None = None,
    api_key: str | None = None,
) -> dict | list | None:
    """Make an API call and return parsed JSON, or None on failure."""
    headers = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if api_key:
        headers["x-api-key"] = api_key

    resp = client.request(method, path, json=json, params=params, headers=headers)
    if resp.status_code >= 400:
        print(f"  FAILED {method} {path} -> {resp.status_code}: {resp.text[:200]}")
        return None
    if resp.headers.get("content-type", "").startswith("application/json"):
        return resp.json()
    return None


def section(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


# ---------------------------------------------------------------------------
# Sign in
# ---------------------------------------------------------------------------


def sign_in(client: httpx.Client, email: str, password: str) -> tuple[str, str] | None:
    """Sign in and return (access token, user id)."""
    section("Sign In")
    result = api(client, "POST", "/api/auth/sign-in", json={
        "email": email,
        "password": password,
    })
    if not result or not result.get("is_signed_in"):
        print(f"  Sign-in failed for {email}")
        return None
    print(f"  Signed in as {result['username']} ({result['user_id']})")
    return result["tokens"]["access_token"], result["user_id"]


# ---------------------------------------------------------------------------
# National progress
# ---------------------------------------------------------------------------


def seed_canada_progress(client: httpx.Client, api_key: str) -> None:
    section("Canada Progress")
    record = api(client, "POST", "/api/data/canada-progress", api_key=api_key, json={
        "people_impacted": 182_400,
        "people_impacted_goal": 1_000_000,
        "clean_air_produced_m2": 52_300.0,
        "clean_air_produced_goal_m2": 250_000.0,
        "area_affected_m2": 1_240_000.0,
        "area_affected_goal_m2": 5_000_000.0,
        "km_offset": 88_150.0,
        "km_offset_goal": 400_000.0,
    })
    if record:
        print(f"  Created CanadaProgress {record['id']}")


# ---------------------------------------------------------------------------
# Folders, green spaces and zones
# ---------------------------------------------------------------------------

DEMO_FOLDERS = [
    {
        "name": "Riverside Restoration",
        "recorded_by_name": "Jane Smith",
        "green_spaces": [
            {
                "title": "Speed River Meadow",
                "status": "SUBMITTED",
                "people_count": 1200,
                "green_area_m2": 8400.0,
                "water_area_m2": 650.0,
                "location": {"lat": 43.5448, "long": -80.2482},
                "zones": [
                    {"name": "North lawn", "type": "LAWN", "area_sq_ft": 21000.0},
                    {"name": "Bank plantings", "type": "SHRUB", "number_of_items": 140},
                ],
            },
            {
                "title": "Eramosa Trailhead",
                "people_count": 450,
                "green_area_m2": 2100.0,
                "location": {"lat": 43.5560, "long": -80.2390},
                "zones": [
                    {"name": "Maple row", "type": "TREE", "number_of_items": 36},
                ],
            },
        ],
    },
    {
        "name": "Schoolyard Canopy",
        "recorded_by_name": "Jane Smith",
        "green_spaces": [
            {
                "title": "Central Public School Yard",
                "status": "SUBMITTED",
                "people_count": 600,
                "green_area_m2": 3300.0,
                "building_count": 2,
                "zones": [
                    {"name": "Shade trees", "type": "TREE", "number_of_items": 24},
                    {"name": "Play field", "type": "LAWN", "area_sq_ft": 15500.0},
                ],
            },
            {
                "title": "Library Courtyard",
                "people_count": 150,
                "green_area_m2": 420.0,
                "zones": [],
            },
        ],
    },
]


def seed_green_spaces(client: httpx.Client, token: str, user_id: str) -> list[dict]:
    section("Project Folders, Green Spaces and Zones")
    created: list[dict] = []
    today = date.today().isoformat()
    for folder_spec in DEMO_FOLDERS:
        folder = api(client, "POST", "/api/data/project-folders", token=token, json={
            "name": folder_spec["name"],
            "recorded_by_name": folder_spec["recorded_by_name"],
            "on_date": today,
            "user_id": user_id,
        })
        if not folder:
            continue
        print(f"  Folder: {folder['name']}")

        for space_spec in folder_spec["green_spaces"]:
            zones = space_spec["zones"]
            payload = {k: v for k, v in space_spec.items() if k != "zones"}
            space = api(client, "POST", "/api/data/green-spaces", token=token, json={
                **payload,
                "on_date": today,
                "recorded_by_name": folder_spec["recorded_by_name"],
                "user_id": user_id,
                "project_folder_id": folder["id"],
            })
            if not space:
                continue
            created.append(space)
            print(f"    Green space: {space['title']} [{space['status']}]")

            for zone_spec in zones:
                zone = api(client, "POST", "/api/data/zones", token=token, json={
                    **zone_spec,
                    "green_space_id": space["id"],
                    "last_maintenance_date": today,
                })
                if zone:
                    print(f"      Zone: {zone['name']} ({zone['type']})")
    return created


def seed_user_impact(client: httpx.Client, token: str, user_id: str, spaces: list[dict]) -> None:
    section("User Impact")
    people = sum(s.get("people_count") or 0 for s in spaces)
    area = sum(s.get("green_area_m2") or 0.0 for s in spaces)
    record = api(client, "POST", "/api/data/user-impacts", token=token, json={
        "people_impacted": people,
        "people_impacted_goal": 5000,
        "clean_air_produced_m2": round(area * 0.4, 1),
        "clean_air_produced_goal_m2": 10_000.0,
        "area_affected_m2": area,
        "area_affected_goal_m2": 25_000.0,
        "km_offset": round(area * 0.12, 1),
        "km_offset_goal": 5_000.0,
        "user_id": user_id,
    })
    if record:
        print(f"  People impacted: {people}, area affected: {area} m2")


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


def verify_data(client: httpx.Client, token: str, user_id: str, api_key: str) -> None:
    section("Verification")
    spaces = api(client, "GET", f"/api/data/users/{user_id}/green-spaces", token=token)
    if spaces is not None:
        print(f"  Green spaces owned: {len(spaces['items'])}")
    submitted = api(
        client, "GET", "/api/data/green-spaces", token=token, params={"status": "SUBMITTED"}
    )
    if submitted is not None:
        print(f"  Submitted: {len(submitted['items'])}")
    mine = api(client, "GET", f"/api/impact/users/{user_id}", token=token)
    if mine:
        print(f"  Personal progress: {mine['overall_percent']}%")
    national = api(client, "GET", "/api/impact/canada", api_key=api_key)
    if national:
        print(f"  National progress: {national['overall_percent']}%")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Seed demo data into a running Green Space Tracker backend"
    )
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"Backend base URL (default: {DEFAULT_BASE_URL})",
    )
    parser.add_argument(
        "--email",
        default=os.environ.get("DEMO_USER_EMAIL", "jane.smith@example.org"),
        help="Fixture user to sign in as",
    )
    parser.add_argument(
        "--password",
        default=os.environ.get("DEMO_USER_PASSWORD", "Greenspace#2024"),
        help="Password for --email",
    )
    parser.add_argument(
        "--skip-national",
        action="store_true",
        help="Skip the CanadaProgress record",
    )
    args = parser.parse_args()

    print("Green Space Tracker Demo Data Seeder")
    print(f"Target: {args.base_url}")
    print(f"Time:   {datetime.now(timezone.utc).isoformat()}")

    with httpx.Client(base_url=args.base_url, timeout=30.0) as client:
        try:
            health = api(client, "GET", "/api/health")
            if not health:
                print("\nERROR: Backend is not responding. Start it first:")
                print("  uvicorn greenspace.web.app:create_app --factory --port 8080")
                sys.exit(1)
        except httpx.ConnectError:
            print(f"\nERROR: Cannot connect to {args.base_url}")
            print("Start the backend first:")
            print("  uvicorn greenspace.web.app:create_app --factory --port 8080")
            sys.exit(1)

        print(f"Backend: {health.get('status', 'unknown')} (v{health.get('version', '?')}, "
              f"{health.get('storage', '?')} storage)")

        config = api(client, "GET", "/api/client-config")
        if not config:
            sys.exit(1)
        api_key = config["api_key"]

        session = sign_in(client, args.email, args.password)
        if session is None:
            sys.exit(1)
        token, user_id = session

        if not args.skip_national:
            seed_canada_progress(client, api_key)
        spaces = seed_green_spaces(client, token, user_id)
        seed_user_impact(client, token, user_id, spaces)
        verify_data(client, token, user_id, api_key)

    print("\nDone.")


if __name__ == "__main__":
    main()
