"""Import a CSV file into a form through the REST API.

Usage:
    python scripts/import_csv.py <form_id> path/to/data.csv [--dry-run]

API_BASE_URL and API_TOKEN are read from the environment (or .env). Runs the
same checks as the web import, then creates one submission per row.
"""
import asyncio
import sys
import os
import uuid
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
from jose import jwt

from sdg_portal.core.config import settings
from sdg_portal.services.csv_import import CSVImporter, CSVImportError, FieldDefinition, SubmitFailure
from sdg_portal.services.submission_store import HttpSubmissionStore, build_api_client


async def fetch_field_definitions(client: httpx.AsyncClient, form_id: uuid.UUID) -> list[FieldDefinition]:
    response = await client.get(f"/api/v1/forms/{form_id}/fields")
    response.raise_for_status()
    return [
        FieldDefinition(
            name=item["field_name"],
            label=item["field_label"],
            type=item["field_type"],
            required=item["is_required"],
            order=item["field_order"],
            is_primary_column=item["is_primary_column"],
        )
        for item in response.json()
    ]


async def main(form_id: uuid.UUID, csv_path: Path, dry_run: bool) -> int:
    if not settings.API_TOKEN:
        print("API_TOKEN is not set.")
        return 1
    # The server stamps submissions from the token; this only labels the run.
    submitted_by = uuid.UUID(jwt.get_unverified_claims(settings.API_TOKEN)["sub"])

    async with build_api_client(settings) as client:
        fields = await fetch_field_definitions(client, form_id)
        importer = CSVImporter(
            HttpSubmissionStore(client),
            max_concurrency=settings.IMPORT_SUBMIT_CONCURRENCY,
        )
        try:
            outcome = await importer.run(
                csv_path.read_text(encoding="utf-8-sig"),
                form_id=form_id,
                fields=fields,
                submitted_by=submitted_by,
                dry_run=dry_run,
            )
        except (CSVImportError, SubmitFailure) as exc:
            print(f"[error] {exc}")
            return 1

    print(f"[{outcome.status.value}] {outcome.message}")
    for issue in [*outcome.validation_errors, *outcome.duplicate_errors, *outcome.existing_errors]:
        print(f"  - {issue.message}")
    return 0 if outcome.ok else 2


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--dry-run"]
    if len(args) != 2:
        print("Usage: python scripts/import_csv.py <form_id> path/to/data.csv [--dry-run]")
        sys.exit(1)

    sys.exit(asyncio.run(main(uuid.UUID(args[0]), Path(args[1]), "--dry-run" in sys.argv)))
