"""Form lookups shared by the form, submission, and import endpoints."""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sdg_portal.models.form import Form, FormField
from sdg_portal.services.csv_import import FieldDefinition


async def get_form_fields(db: AsyncSession, form_id: uuid.UUID) -> list[FormField] | None:
    """Return the form's fields ordered by field_order, or None if the form does not exist."""
    form = (
        await db.execute(select(Form).where(Form.id == form_id))
    ).scalar_one_or_none()
    if form is None:
        return None

    result = await db.execute(
        select(FormField)
        .where(FormField.form_id == form_id)
        .order_by(FormField.field_order.asc())
    )
    return list(result.scalars().all())


def to_definitions(form_fields: list[FormField]) -> list[FieldDefinition]:
    return [FieldDefinition.from_model(f) for f in form_fields]
