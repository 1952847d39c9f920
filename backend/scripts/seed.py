"""Seed script: creates a sample SDG indicator form and prints a dev token.

Idempotent: the form is looked up by name before inserting.
Run: python scripts/seed.py
"""
import asyncio
import sys
import os
import uuid

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from sdg_portal.core.config import settings
from sdg_portal.core.security import create_access_token
from sdg_portal.models.form import Form, FormCategory, FormField

DEV_ADMIN_ID = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")

SAMPLE_FORM_NAME = "1.2.2 Multidimensional Poverty (Balochistan)"
SAMPLE_FIELDS = [
    # (field_name, field_label, field_type, is_required, is_primary_column)
    ("year", "Year", "number", True, True),
    ("district", "District", "select", True, True),
    ("overall_value", "Overall Value", "number", True, False),
    ("urban_value", "Urban Value", "number", False, False),
    ("rural_value", "Rural Value", "number", False, False),
    ("data_source", "Data Source", "text", False, False),
]


async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=True)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async with SessionLocal() as db:
        result = await db.execute(select(Form).where(Form.name == SAMPLE_FORM_NAME))
        form = result.scalars().first()
        if form:
            print(f"  [skip] Form {SAMPLE_FORM_NAME}")
        else:
            form = Form(
                name=SAMPLE_FORM_NAME,
                description="Proportion of population living in multidimensional poverty",
                category=FormCategory.sdg.value,
                created_by=DEV_ADMIN_ID,
                is_active=True,
            )
            db.add(form)
            await db.flush()
            for order, (name, label, field_type, required, primary) in enumerate(SAMPLE_FIELDS):
                db.add(FormField(
                    form_id=form.id,
                    field_name=name,
                    field_label=label,
                    field_type=field_type,
                    is_required=required,
                    is_primary_column=primary,
                    field_order=order,
                ))
            print(f"  [new]  Form {SAMPLE_FORM_NAME}")

        await db.commit()
        print("Seed complete.")
        print(f"  form_id: {form.id}")
        print(f"  admin token: {create_access_token(subject=str(DEV_ADMIN_ID), role='admin')}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
