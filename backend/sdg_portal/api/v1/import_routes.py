"""CSV bulk import endpoints for form submissions."""
import uuid
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from sdg_portal.core.config import settings
from sdg_portal.core.deps import Principal, require_role
from sdg_portal.core.limiter import limiter
from sdg_portal.db.session import AsyncSessionLocal, get_session
from sdg_portal.schemas.imports import CSVImportRequest, ImportOutcomeOut
from sdg_portal.services.csv_import import CSVImporter, CSVImportError, SubmitFailure
from sdg_portal.services.forms import get_form_fields, to_definitions
from sdg_portal.services.submission_store import SqlSubmissionStore, SubmissionStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_submission_store() -> SubmissionStore:
    return SqlSubmissionStore(AsyncSessionLocal)


# ─── Helpers ───

def _decode_upload(content: bytes) -> str:
    # utf-8-sig drops a leading BOM that would otherwise stick to the first header.
    return content.decode("utf-8-sig", errors="replace")


async def _run_import(
    *,
    db: AsyncSession,
    store: SubmissionStore,
    form_id: uuid.UUID,
    csv_text: str,
    submitted_by: uuid.UUID,
    schedule_id: uuid.UUID | None,
    dry_run: bool,
) -> ImportOutcomeOut:
    form_fields = await get_form_fields(db, form_id)
    if form_fields is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found.")

    importer = CSVImporter(store, max_concurrency=settings.IMPORT_SUBMIT_CONCURRENCY)
    try:
        outcome = await importer.run(
            csv_text,
            form_id=form_id,
            fields=to_definitions(form_fields),
            submitted_by=submitted_by,
            schedule_id=schedule_id,
            dry_run=dry_run,
        )
    except CSVImportError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except SubmitFailure as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    logger.info(
        "CSV import form_id=%s status=%s dry_run=%s validation=%d duplicates=%d existing=%d created=%d",
        form_id,
        outcome.status.value,
        dry_run,
        len(outcome.validation_errors),
        len(outcome.duplicate_errors),
        len(outcome.existing_errors),
        outcome.created,
    )
    return ImportOutcomeOut.from_outcome(outcome)


# ─── POST /import/forms/{form_id}/preview ───

@router.post(
    "/forms/{form_id}/preview",
    response_model=ImportOutcomeOut,
    summary="Validate pasted CSV against a form without creating submissions",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def preview_import(
    request: Request,
    form_id: uuid.UUID,
    body: CSVImportRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    store: Annotated[SubmissionStore, Depends(get_submission_store)],
    current_user: Annotated[Principal, Depends(require_role("admin", "data_entry_user"))],
):
    return await _run_import(
        db=db,
        store=store,
        form_id=form_id,
        csv_text=body.csv_text,
        submitted_by=current_user.id,
        schedule_id=body.schedule_id,
        dry_run=True,
    )


# ─── POST /import/forms/{form_id} ───

@router.post(
    "/forms/{form_id}",
    response_model=ImportOutcomeOut,
    summary="Bulk import pasted CSV rows as form submissions",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_csv_text(
    request: Request,
    form_id: uuid.UUID,
    body: CSVImportRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    store: Annotated[SubmissionStore, Depends(get_submission_store)],
    current_user: Annotated[Principal, Depends(require_role("admin", "data_entry_user"))],
):
    return await _run_import(
        db=db,
        store=store,
        form_id=form_id,
        csv_text=body.csv_text,
        submitted_by=current_user.id,
        schedule_id=body.schedule_id,
        dry_run=False,
    )


# ─── POST /import/forms/{form_id}/upload ───

@router.post(
    "/forms/{form_id}/upload",
    response_model=ImportOutcomeOut,
    summary="Bulk import an uploaded CSV file as form submissions",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_csv_file(
    request: Request,
    form_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    store: Annotated[SubmissionStore, Depends(get_submission_store)],
    current_user: Annotated[Principal, Depends(require_role("admin", "data_entry_user"))],
    file: UploadFile = File(...),
    schedule_id: uuid.UUID | None = Form(default=None),
    dry_run: bool = Form(default=False),
):
    content = await file.read()
    return await _run_import(
        db=db,
        store=store,
        form_id=form_id,
        csv_text=_decode_upload(content),
        submitted_by=current_user.id,
        schedule_id=schedule_id,
        dry_run=dry_run,
    )
