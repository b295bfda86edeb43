"""initial adcast schema: advertisers, condition rules, advertising, audio, government data

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0a1b2c3d4e5f"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "advertisers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("business_type", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="Active", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.CheckConstraint("status IN ('Active', 'Inactive')", name="ck_advertiser_status"),
    )

    op.create_table(
        "condition_rules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("rule_id", sa.String(length=100), nullable=False),
        sa.Column("advertiser_id", sa.Integer(), nullable=False),
        sa.Column("priority", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("conditions", postgresql.JSONB(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["advertiser_id"], ["advertisers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("rule_id"),
    )

    op.create_table(
        "advertising",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("rule_id", sa.String(length=100), nullable=False),
        sa.Column("advertiser_id", sa.Integer(), nullable=False),
        sa.Column("audio_file", sa.String(length=500)),
        sa.Column("status", sa.String(length=20), server_default="Pending", nullable=False),
        sa.Column("priority", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("attempts", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["advertiser_id"], ["advertisers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Done', 'Failed')", name="ck_advertising_status"
        ),
        sa.CheckConstraint("attempts >= 0", name="ck_advertising_attempts"),
    )
    op.create_index(
        "idx_advertising_status_priority",
        "advertising",
        ["status", "priority", "created_at"],
    )

    op.create_table(
        "audio",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("advertising_id", sa.Integer(), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column(
            "variables",
            postgresql.JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("audio_url", sa.String(length=500)),
        sa.Column("voice_type", sa.String(length=20), nullable=False),
        sa.Column("duration_seconds", sa.Float()),
        sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("synthesized_at", sa.DateTime(timezone=True)),
        sa.ForeignKeyConstraint(["advertising_id"], ["advertising.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'failed')", name="ck_audio_status"
        ),
        sa.CheckConstraint("voice_type IN ('male', 'female')", name="ck_audio_voice_type"),
    )

    op.create_table(
        "government_data",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("source", sa.String(length=50), nullable=False),
        sa.Column("raw_data", postgresql.JSONB(), nullable=False),
        sa.Column("temperature", sa.Float()),
        sa.Column("humidity", sa.Float()),
        sa.Column("condition", sa.String(length=200)),
        sa.Column("uv_index", sa.Float()),
        sa.Column("aqi", sa.Float()),
        sa.Column("location", sa.String(length=100), server_default="Singapore", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_government_data_created_at", "government_data", ["created_at"]
    )

    # Keep updated_at current even for writes that bypass the ORM
    op.execute(
        """
        CREATE OR REPLACE FUNCTION set_advertising_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = now();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_advertising_updated_at
        BEFORE UPDATE ON advertising
        FOR EACH ROW EXECUTE FUNCTION set_advertising_updated_at();
        """
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_advertising_updated_at ON advertising")
    op.execute("DROP FUNCTION IF EXISTS set_advertising_updated_at()")
    op.drop_index("idx_government_data_created_at", table_name="government_data")
    op.drop_table("government_data")
    op.drop_table("audio")
    op.drop_index("idx_advertising_status_priority", table_name="advertising")
    op.drop_table("advertising")
    op.drop_table("condition_rules")
    op.drop_table("advertisers")
