"""Seed two duplicate healthcare API registrations for consolidation demos.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy import delete

# Make `api_registry` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from api_registry.db.session import SessionLocal
from api_registry.models.api_endpoint import ApiEndpoint
from api_registry.models.api_integration import ApiIntegration


INTERNAL_API_ID = "internal_healthcare_api"
CORE_API_ID = "core_healthcare_api"

_RESOURCES = ("patients", "encounters", "observations", "medications", "allergies")


def build_demo_integrations() -> list[ApiIntegration]:
    """Return the internal (active, thin) and core (draft, documented) registrations."""

    return [
        ApiIntegration(
            id=INTERNAL_API_ID,
            name="internal_healthcare_api",
            status="active",
            base_url="https://internal.example.org/api",
            endpoints_count=9,
        ),
        ApiIntegration(
            id=CORE_API_ID,
            name="core_healthcare_api",
            status="draft",
            documentation_url="https://docs.example.org/core-healthcare",
            version="2.1.0",
            endpoints_count=20,
        ),
    ]


def build_demo_endpoints() -> list[ApiEndpoint]:
    """Core carries 20 fully-described endpoints; internal mirrors 9 of them without schemas."""

    endpoints: list[ApiEndpoint] = []
    for resource in _RESOURCES:
        for method, path in (
            ("GET", f"/{resource}"),
            ("POST", f"/{resource}"),
            ("GET", f"/{resource}/{{id}}"),
            ("PUT", f"/{resource}/{{id}}"),
        ):
            endpoints.append(
                ApiEndpoint(
                    external_api_id=CORE_API_ID,
                    method=method,
                    external_path=path,
                    request_schema={"type": "object", "title": f"{resource} request"},
                    response_schema={"type": "object", "title": f"{resource} response"},
                    requires_authentication=True,
                )
            )
    mirrored = [endpoint for endpoint in endpoints if endpoint.method == "GET"][:9]
    endpoints.extend(
        ApiEndpoint(
            external_api_id=INTERNAL_API_ID,
            method=endpoint.method,
            external_path=endpoint.external_path,
        )
        for endpoint in mirrored
    )
    return endpoints


def reset_demo(db) -> None:
    """Remove existing demo registrations and their endpoints."""

    ids = [INTERNAL_API_ID, CORE_API_ID]
    db.execute(delete(ApiEndpoint).where(ApiEndpoint.external_api_id.in_(ids)))
    db.execute(delete(ApiIntegration).where(ApiIntegration.id.in_(ids)))
    db.commit()


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed duplicate healthcare API registrations.")
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Do not delete existing demo registrations before seeding.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    integrations = build_demo_integrations()
    endpoints = build_demo_endpoints()

    with SessionLocal() as db:
        if not args.no_reset:
            reset_demo(db)
        db.add_all(integrations)
        db.flush()
        db.add_all(endpoints)
        db.commit()

    print("Seed complete")
    print(f"integrations_created={len(integrations)}")
    print(f"endpoints_created={len(endpoints)}")
    print()
    print("Inspect:")
    print(f"  GET  /consolidation/recommendation?candidate_ids={INTERNAL_API_ID}&candidate_ids={CORE_API_ID}")
    print("  GET  /consolidation/recommendation?pattern=healthcare")
    print(f'  POST /consolidation/validate {{"keep_id": "{CORE_API_ID}", "remove_ids": ["{INTERNAL_API_ID}"]}}')


if __name__ == "__main__":
    main()
