"""Form submission endpoints: list, create one entry, delete."""
import uuid
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sdg_portal.core.deps import Principal, require_role
from sdg_portal.db.session import get_session
from sdg_portal.models.form import FormSubmission
from sdg_portal.schemas.submission import FormSubmissionCreate, FormSubmissionOut
from sdg_portal.services.csv_import import missing_required
from sdg_portal.services.forms import get_form_fields, to_definitions

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── List submissions ───

@router.get(
    "",
    response_model=list[FormSubmissionOut],
    summary="List submissions, optionally filtered by form and schedule",
)
async def list_submissions(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[Principal, Depends(require_role("admin", "data_entry_user"))],
    form_id: uuid.UUID | None = Query(default=None),
    schedule_id: uuid.UUID | None = Query(default=None),
):
    stmt = select(FormSubmission)
    if form_id is not None:
        stmt = stmt.where(FormSubmission.form_id == form_id)
    if schedule_id is not None:
        stmt = stmt.where(FormSubmission.schedule_id == schedule_id)
    stmt = stmt.order_by(FormSubmission.submitted_at.asc())

    result = await db.execute(stmt)
    return result.scalars().all()


# ─── Create submission ───

@router.post(
    "",
    response_model=FormSubmissionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Submit one entry for a form",
)
async def create_submission(
    body: FormSubmissionCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[Principal, Depends(require_role("admin", "data_entry_user"))],
):
    form_fields = await get_form_fields(db, body.form_id)
    if form_fields is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found.")

    # Only absent, null or "" count as missing; 0 and false are answers.
    missing = missing_required(body.data, to_definitions(form_fields))
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Please fill in all required fields: {', '.join(f.label for f in missing)}",
        )

    submission = FormSubmission(
        form_id=body.form_id,
        schedule_id=body.schedule_id,
        submitted_by=current_user.id,
        data=body.data,
    )
    db.add(submission)
    await db.commit()
    await db.refresh(submission)
    logger.info("Submission created form_id=%s submission_id=%s", body.form_id, submission.id)
    return submission


# ─── Delete submission ───

@router.delete(
    "/{submission_id}",
    summary="Delete a submission",
)
async def delete_submission(
    submission_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[Principal, Depends(require_role("admin", "data_entry_user"))],
):
    submission = (
        await db.execute(select(FormSubmission).where(FormSubmission.id == submission_id))
    ).scalar_one_or_none()
    if submission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form submission not found.")

    await db.delete(submission)
    await db.commit()
    return {"success": True}
