"""create forms, form_fields and form_submissions tables

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'forms',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_forms'),
    )

    op.create_table(
        'form_fields',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('form_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('field_name', sa.String(length=255), nullable=False),
        sa.Column('field_label', sa.String(length=255), nullable=False),
        sa.Column('field_type', sa.String(length=50), nullable=False),
        sa.Column('is_required', sa.Boolean(), nullable=False),
        sa.Column('is_primary_column', sa.Boolean(), nullable=False),
        sa.Column('is_secondary_column', sa.Boolean(), nullable=False),
        sa.Column('placeholder_text', sa.Text(), nullable=True),
        sa.Column('reference_data_name', sa.String(length=255), nullable=True),
        sa.Column('field_order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['form_id'], ['forms.id'], name='fk_form_fields_form_id_forms', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_form_fields'),
    )
    op.create_index('ix_form_fields_form_id', 'form_fields', ['form_id'])

    # No unique constraint on data: duplicate prevention is the importer's job.
    op.create_table(
        'form_submissions',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('form_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('schedule_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('submitted_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('data', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.ForeignKeyConstraint(['form_id'], ['forms.id'], name='fk_form_submissions_form_id_forms', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_form_submissions'),
    )
    op.create_index('ix_form_submissions_form_id', 'form_submissions', ['form_id'])
    op.create_index('ix_form_submissions_schedule_id', 'form_submissions', ['schedule_id'])


def downgrade() -> None:
    op.drop_index('ix_form_submissions_schedule_id', table_name='form_submissions')
    op.drop_index('ix_form_submissions_form_id', table_name='form_submissions')
    op.drop_table('form_submissions')
    op.drop_index('ix_form_fields_form_id', table_name='form_fields')
    op.drop_table('form_fields')
    op.drop_table('forms')
