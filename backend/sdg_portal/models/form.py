import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sdg_portal.db.base import Base, TimestampMixin, UUIDMixin


class FormCategory(str, enum.Enum):
    bbos = "bbos"
    sdg = "sdg"


class Form(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "forms"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default=FormCategory.sdg.value)
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    fields: Mapped[list["FormField"]] = relationship(
        "FormField",
        back_populates="form",
        order_by="FormField.field_order",
        cascade="all, delete-orphan",
    )


class FormField(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "form_fields"

    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    field_name: Mapped[str] = mapped_column(String(255), nullable=False)
    field_label: Mapped[str] = mapped_column(String(255), nullable=False)
    field_type: Mapped[str] = mapped_column(String(50), nullable=False)  # text, number, date, textarea, select, ...
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Business key for CSV duplicate detection, not a database key.
    is_primary_column: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_secondary_column: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    placeholder_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference_data_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    field_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    form: Mapped["Form"] = relationship("Form", back_populates="fields")


class FormSubmission(Base, UUIDMixin):
    __tablename__ = "form_submissions"

    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    schedule_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)
    submitted_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
    data: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, default=dict, server_default=text("'{}'::jsonb")
    )
