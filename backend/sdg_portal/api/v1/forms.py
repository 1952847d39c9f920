"""Form field endpoints: ordered field list and CSV template download."""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sdg_portal.core.deps import Principal, require_role
from sdg_portal.db.session import get_session
from sdg_portal.schemas.forms import FormFieldOut
from sdg_portal.services.csv_import import build_template_csv
from sdg_portal.services.forms import get_form_fields, to_definitions

router = APIRouter()

TEMPLATE_FILENAME = "data_entry_template.csv"


@router.get(
    "/{form_id}/fields",
    response_model=list[FormFieldOut],
    summary="List a form's fields in display order",
)
async def list_form_fields(
    form_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[Principal, Depends(require_role("admin", "data_entry_user"))],
):
    form_fields = await get_form_fields(db, form_id)
    if form_fields is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found.")
    return form_fields


@router.get(
    "/{form_id}/template.csv",
    summary="Download a header-only CSV template for bulk import",
    response_class=Response,
)
async def download_template(
    form_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[Principal, Depends(require_role("admin", "data_entry_user"))],
):
    form_fields = await get_form_fields(db, form_id)
    if form_fields is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found.")

    return Response(
        content=build_template_csv(to_definitions(form_fields)),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )
