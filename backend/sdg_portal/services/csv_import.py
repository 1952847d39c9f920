"""CSV bulk import for tabular form submissions.

One run moves through these stages, stopping at the first one that fails:

    parse → required fields → in-batch duplicates → stored duplicates → submit

Row-level problems are collected and returned in full so the caller can show
all of them at once. Only empty input and a failed submit are raised.

Known limitations, kept on purpose:
  - Lines are split on bare commas; quoted values and embedded commas are not
    supported.
  - The stored-duplicate check is fail-open: if the store cannot be read the
    import proceeds as if no duplicates existed.
  - Nothing in the database enforces uniqueness of primary-column values, so
    two concurrent imports can both pass the checks and insert the same record.
  - Rows are created by independent calls. If one fails the caller only learns
    that the upload failed, not which rows were stored.
"""
import asyncio
import enum
import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sdg_portal.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)

ParsedRow = dict[str, str]
IdentityKey = tuple[str, ...]
KeyPairs = tuple[tuple[str, str], ...]

EMPTY_INPUT_MESSAGE = "CSV must have at least 2 lines (headers + data)"
NO_VALID_ENTRIES_MESSAGE = (
    "No valid entries found in CSV data. Please check the format and required fields."
)
SUBMIT_FAILURE_MESSAGE = "Failed to upload CSV data. Please check the format and try again."


# ─── Exceptions ───────────────────────────────────────────────────────────────

class CSVImportError(ValueError):
    """Raised when CSV input cannot be imported at all."""


class EmptyInputError(CSVImportError):
    """Raised when the input has no data line after the header."""

    def __init__(self, message: str = EMPTY_INPUT_MESSAGE) -> None:
        super().__init__(message)


class SubmitFailure(RuntimeError):
    """Raised when one or more create calls fail during submit."""

    def __init__(self, *, attempted: int, message: str = SUBMIT_FAILURE_MESSAGE) -> None:
        super().__init__(message)
        self.attempted = attempted


# ─── Field definitions ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldDefinition:
    name: str
    label: str
    type: str = "text"
    required: bool = False
    order: int = 0
    is_primary_column: bool = False

    @classmethod
    def from_model(cls, form_field: Any) -> "FieldDefinition":
        """Build from a FormField row (or anything with the same attributes)."""
        return cls(
            name=form_field.field_name,
            label=form_field.field_label,
            type=form_field.field_type,
            required=bool(form_field.is_required),
            order=form_field.field_order or 0,
            is_primary_column=bool(form_field.is_primary_column),
        )


def ordered_fields(fields: Iterable[FieldDefinition]) -> list[FieldDefinition]:
    return sorted(fields, key=lambda f: f.order)


def primary_columns(fields: Sequence[FieldDefinition]) -> list[FieldDefinition]:
    return [f for f in fields if f.is_primary_column]


# ─── Row issues ───────────────────────────────────────────────────────────────

def _format_pairs(pairs: KeyPairs) -> str:
    return ", ".join(f"{label}: {value}" for label, value in pairs)


@dataclass(frozen=True)
class RequiredFieldMissing:
    line: int
    labels: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"Row {self.line}: Missing required fields: {', '.join(self.labels)}"


@dataclass(frozen=True)
class IntraBatchDuplicate:
    line: int
    key_pairs: KeyPairs

    @property
    def message(self) -> str:
        return f"Row {self.line}: Duplicate entry detected ({_format_pairs(self.key_pairs)})"


@dataclass(frozen=True)
class CrossStoreDuplicate:
    # 1-based position among accepted entries, not a source line number.
    entry_index: int
    key_pairs: KeyPairs

    @property
    def message(self) -> str:
        return f"Entry {self.entry_index}: Already exists in database ({_format_pairs(self.key_pairs)})"


@dataclass
class ImportResult:
    entries: list[ParsedRow] = field(default_factory=list)
    entry_lines: list[int] = field(default_factory=list)
    validation_errors: list[RequiredFieldMissing] = field(default_factory=list)
    duplicate_errors: list[IntraBatchDuplicate] = field(default_factory=list)


# ─── Parsing ──────────────────────────────────────────────────────────────────

def map_headers(headers: Sequence[str], fields: Sequence[FieldDefinition]) -> dict[str, str]:
    """Map header text → field name.

    A field claims the first header equal (case-insensitively) to its label or
    its name. Headers no field claims are left out.
    """
    mapping: dict[str, str] = {}
    for f in fields:
        label = f.label.lower()
        name = f.name.lower()
        for header in headers:
            lowered = header.lower()
            if lowered == label or lowered == name:
                mapping[header] = f.name
                break
    return mapping


def parse_csv(csv_text: str, fields: Sequence[FieldDefinition]) -> list[tuple[int, ParsedRow]]:
    """Split CSV text into (line number, row) pairs. Line 1 is the header."""
    lines = csv_text.strip().split("\n")
    if len(lines) < 2:
        raise EmptyInputError()

    headers = [h.strip() for h in lines[0].split(",")]
    header_map = map_headers(headers, fields)

    rows: list[tuple[int, ParsedRow]] = []
    for line_number, line in enumerate(lines[1:], start=2):
        values = [v.strip() for v in line.split(",")]
        row: ParsedRow = {}
        for index, header in enumerate(headers):
            field_name = header_map.get(header)
            if field_name is None:
                continue
            row[field_name] = values[index] if index < len(values) else ""
        if not row:
            # no header maps to a field
            continue
        rows.append((line_number, row))
    return rows


# ─── Identity keys ────────────────────────────────────────────────────────────

def _key_value(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def identity_key(data: Mapping[str, Any], primary: Sequence[FieldDefinition]) -> IdentityKey:
    return tuple(_key_value(data.get(f.name)) for f in primary)


def _key_pairs(row: Mapping[str, Any], primary: Sequence[FieldDefinition]) -> KeyPairs:
    return tuple((f.label, _key_value(row.get(f.name))) for f in primary)


# ─── Validation ───────────────────────────────────────────────────────────────

def missing_required(row: Mapping[str, Any], fields: Sequence[FieldDefinition]) -> list[FieldDefinition]:
    return [f for f in fields if f.required and (row.get(f.name) is None or row.get(f.name) == "")]


def validate_rows(
    rows: Iterable[tuple[int, ParsedRow]],
    fields: Sequence[FieldDefinition],
) -> ImportResult:
    """Apply the required-field and in-batch duplicate checks in row order.

    A row that fails the required-field check never reaches the duplicate
    check, so it does not claim its key. The first row with a given key is
    kept; later ones are rejected.
    """
    primary = primary_columns(fields)
    seen: set[IdentityKey] = set()
    result = ImportResult()

    for line_number, row in rows:
        missing = missing_required(row, fields)
        if missing:
            result.validation_errors.append(
                RequiredFieldMissing(line=line_number, labels=tuple(f.label for f in missing))
            )
            continue

        if primary:
            key = identity_key(row, primary)
            if key in seen:
                result.duplicate_errors.append(
                    IntraBatchDuplicate(line=line_number, key_pairs=_key_pairs(row, primary))
                )
                continue
            seen.add(key)

        result.entries.append(row)
        result.entry_lines.append(line_number)

    return result


def parse_import(csv_text: str, fields: Iterable[FieldDefinition]) -> ImportResult:
    """Parse and validate one batch. Raises EmptyInputError for short input."""
    ordered = ordered_fields(fields)
    return validate_rows(parse_csv(csv_text, ordered), ordered)


async def find_existing_duplicates(
    store: SubmissionStore,
    form_id: uuid.UUID,
    entries: Sequence[ParsedRow],
    fields: Iterable[FieldDefinition],
) -> list[CrossStoreDuplicate]:
    """Flag entries whose key already exists among the form's stored submissions.

    Does not touch ``entries``. A store error is logged and treated as "no
    duplicates found".
    """
    primary = primary_columns(ordered_fields(fields))
    if not primary or not entries:
        return []

    try:
        existing = await store.list_submissions(form_id)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Stored-duplicate check skipped form_id=%s entries=%d: %s",
            form_id,
            len(entries),
            exc,
        )
        return []

    existing_keys = {identity_key(sub.data or {}, primary) for sub in existing}
    return [
        CrossStoreDuplicate(entry_index=index, key_pairs=_key_pairs(entry, primary))
        for index, entry in enumerate(entries, start=1)
        if identity_key(entry, primary) in existing_keys
    ]


# ─── Template ─────────────────────────────────────────────────────────────────

def build_template_csv(fields: Iterable[FieldDefinition]) -> str:
    """Header-only CSV of field labels in field order."""
    return ",".join(f.label for f in ordered_fields(fields)) + "\n"


# ─── Orchestration ────────────────────────────────────────────────────────────

class ImportStage(str, enum.Enum):
    idle = "idle"
    parsed = "parsed"
    validated = "validated"
    cross_checked = "cross_checked"
    submitting = "submitting"
    succeeded = "succeeded"
    failed = "failed"


class ImportStatus(str, enum.Enum):
    invalid = "invalid"
    duplicates = "duplicates"
    existing_duplicates = "existing_duplicates"
    no_valid_entries = "no_valid_entries"
    ready = "ready"
    succeeded = "succeeded"


@dataclass
class ImportOutcome:
    status: ImportStatus
    stage: ImportStage
    message: str
    entries: list[ParsedRow] = field(default_factory=list)
    validation_errors: list[RequiredFieldMissing] = field(default_factory=list)
    duplicate_errors: list[IntraBatchDuplicate] = field(default_factory=list)
    existing_errors: list[CrossStoreDuplicate] = field(default_factory=list)
    created: int = 0

    @property
    def ok(self) -> bool:
        return self.status in (ImportStatus.ready, ImportStatus.succeeded)


class CSVImporter:
    """Runs one CSV batch against a form and a submission store.

    ``stage`` follows the run as it progresses:

        idle → parsed → validated → cross_checked → submitting → succeeded | failed

    A run that stops early leaves ``stage`` at the last stage it completed. A
    failed submit leaves it at ``failed`` and raises ``SubmitFailure``.
    """

    def __init__(self, store: SubmissionStore, *, max_concurrency: int = 0) -> None:
        self._store = store
        self._max_concurrency = max(0, max_concurrency)
        self.stage = ImportStage.idle

    async def run(
        self,
        csv_text: str,
        *,
        form_id: uuid.UUID,
        fields: Iterable[FieldDefinition],
        submitted_by: uuid.UUID,
        schedule_id: uuid.UUID | None = None,
        dry_run: bool = False,
    ) -> ImportOutcome:
        """Import ``csv_text`` into ``form_id``.

        Args:
            csv_text:     Header line plus data lines.
            form_id:      Target form.
            fields:       The form's field definitions.
            submitted_by: Identity recorded on every created submission.
            schedule_id:  Optional schedule the submissions belong to.
            dry_run:      Stop after the checks; nothing is created.

        Raises:
            EmptyInputError: fewer than two lines of input. ``stage`` stays idle.
            SubmitFailure:   a create call failed. ``stage`` becomes failed.
        """
        self.stage = ImportStage.idle
        fields = ordered_fields(fields)
        result = parse_import(csv_text, fields)
        self.stage = ImportStage.parsed

        if result.validation_errors:
            # Duplicate findings are withheld until required fields are fixed.
            return ImportOutcome(
                status=ImportStatus.invalid,
                stage=self.stage,
                message="Validation Errors",
                validation_errors=result.validation_errors,
            )
        if result.duplicate_errors:
            return ImportOutcome(
                status=ImportStatus.duplicates,
                stage=self.stage,
                message="Duplicate Entries in CSV",
                duplicate_errors=result.duplicate_errors,
            )
        self.stage = ImportStage.validated

        existing_errors = await find_existing_duplicates(self._store, form_id, result.entries, fields)
        if existing_errors:
            return ImportOutcome(
                status=ImportStatus.existing_duplicates,
                stage=self.stage,
                message="Database Duplicates Found",
                entries=result.entries,
                existing_errors=existing_errors,
            )
        self.stage = ImportStage.cross_checked

        if not result.entries:
            return ImportOutcome(
                status=ImportStatus.no_valid_entries,
                stage=self.stage,
                message=NO_VALID_ENTRIES_MESSAGE,
            )

        if dry_run:
            return ImportOutcome(
                status=ImportStatus.ready,
                stage=self.stage,
                message=f"{len(result.entries)} entries ready to import.",
                entries=result.entries,
            )

        self.stage = ImportStage.submitting
        try:
            created = await self._submit(
                form_id=form_id,
                entries=result.entries,
                submitted_by=submitted_by,
                schedule_id=schedule_id,
            )
        except SubmitFailure:
            self.stage = ImportStage.failed
            raise
        self.stage = ImportStage.succeeded

        logger.info("CSV import completed form_id=%s created=%d", form_id, created)
        return ImportOutcome(
            status=ImportStatus.succeeded,
            stage=self.stage,
            message=f"Successfully uploaded {created} entries.",
            entries=result.entries,
            created=created,
        )

    async def _submit(
        self,
        *,
        form_id: uuid.UUID,
        entries: Sequence[ParsedRow],
        submitted_by: uuid.UUID,
        schedule_id: uuid.UUID | None,
    ) -> int:
        semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None

        async def create(entry: ParsedRow):
            if semaphore is None:
                return await self._store.create_submission(
                    form_id, entry, submitted_by=submitted_by, schedule_id=schedule_id
                )
            async with semaphore:
                return await self._store.create_submission(
                    form_id, entry, submitted_by=submitted_by, schedule_id=schedule_id
                )

        try:
            created = await asyncio.gather(*(create(entry) for entry in entries))
        except Exception as exc:
            logger.error(
                "CSV import submit failed form_id=%s entries=%d: %s",
                form_id,
                len(entries),
                exc,
                exc_info=True,
            )
            raise SubmitFailure(attempted=len(entries)) from exc
        return len(created)
