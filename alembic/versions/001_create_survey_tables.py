"""Create survey tables (surveys, survey_responses)

Revision ID: 001_create_survey_tables
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import text
from sqlalchemy.dialects.postgresql import ENUM

# revision identifiers, used by Alembic.
revision = '001_create_survey_tables'
down_revision = None
branch_labels = None
depends_on = None


def table_exists(conn, table_name):
    """Check if a table exists in the database."""
    result = conn.execute(text(
        "SELECT EXISTS (SELECT FROM information_schema.tables WHERE table_name = :table_name)"
    ), {"table_name": table_name})
    return result.scalar()


def upgrade():
    """Create surveys and survey_responses."""
    conn = op.get_bind()

    # Idempotent enum creation (works with async drivers)
    conn.execute(text("""
        DO $$
        BEGIN
            CREATE TYPE survey_status_enum AS ENUM ('draft', 'live');
        EXCEPTION
            WHEN duplicate_object THEN NULL;
        END $$;
    """))

    if not table_exists(conn, 'surveys'):
        op.create_table(
            'surveys',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('title', sa.Text(), nullable=False),
            sa.Column('description', sa.Text(), nullable=False, server_default=''),
            sa.Column('questions', sa.JSON(), nullable=False),
            sa.Column('user_id', sa.String(255), nullable=False, server_default='anonymous', index=True),
            sa.Column(
                'status',
                ENUM('draft', 'live', name='survey_status_enum', create_type=False),
                nullable=False,
                server_default='draft',
            ),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        )

    if not table_exists(conn, 'survey_responses'):
        op.create_table(
            'survey_responses',
            sa.Column('id', sa.String(36), primary_key=True),
            # No ON DELETE CASCADE: deleting a survey removes its responses first
            sa.Column('survey_id', sa.String(36), sa.ForeignKey('surveys.id'), nullable=True, index=True),
            sa.Column('answers', sa.JSON(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        )


def downgrade():
    """Drop survey tables."""
    op.drop_table('survey_responses')
    op.drop_table('surveys')
    conn = op.get_bind()
    conn.execute(text("DROP TYPE IF EXISTS survey_status_enum"))
