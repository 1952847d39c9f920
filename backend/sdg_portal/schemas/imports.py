"""Pydantic schemas for CSV bulk import requests and results."""
import uuid

from pydantic import BaseModel, Field

from sdg_portal.services.csv_import import ImportOutcome


class CSVImportRequest(BaseModel):
    csv_text: str = Field(min_length=1)
    schedule_id: uuid.UUID | None = None


class ImportIssue(BaseModel):
    line: int | None = None
    entry: int | None = None
    message: str


class ImportOutcomeOut(BaseModel):
    status: str
    stage: str
    message: str
    created: int = 0
    entries: list[dict[str, str]] = []
    validation_errors: list[ImportIssue] = []
    duplicate_errors: list[ImportIssue] = []
    existing_errors: list[ImportIssue] = []

    @classmethod
    def from_outcome(cls, outcome: ImportOutcome) -> "ImportOutcomeOut":
        return cls(
            status=outcome.status.value,
            stage=outcome.stage.value,
            message=outcome.message,
            created=outcome.created,
            entries=outcome.entries,
            validation_errors=[ImportIssue(line=e.line, message=e.message) for e in outcome.validation_errors],
            duplicate_errors=[ImportIssue(line=e.line, message=e.message) for e in outcome.duplicate_errors],
            existing_errors=[ImportIssue(entry=e.entry_index, message=e.message) for e in outcome.existing_errors],
        )
