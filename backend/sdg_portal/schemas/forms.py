"""Pydantic schemas for form field endpoints."""
import uuid

from pydantic import BaseModel, ConfigDict


class FormFieldOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    field_name: str
    field_label: str
    field_type: str
    is_required: bool
    is_primary_column: bool
    is_secondary_column: bool
    placeholder_text: str | None = None
    reference_data_name: str | None = None
    field_order: int
