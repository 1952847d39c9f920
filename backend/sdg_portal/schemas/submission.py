"""Pydantic schemas for form submissions."""
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FormSubmissionCreate(BaseModel):
    form_id: uuid.UUID
    schedule_id: uuid.UUID | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class FormSubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    schedule_id: uuid.UUID | None = None
    submitted_by: uuid.UUID
    submitted_at: datetime
    data: dict[str, Any] = Field(default_factory=dict)
