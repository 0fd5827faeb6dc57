"""api integration registry and consolidation tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "api_integration_registry",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("base_url", sa.String(length=1024), nullable=True),
        sa.Column("documentation_url", sa.String(length=1024), nullable=True),
        sa.Column("version", sa.String(length=32), nullable=True),
        sa.Column("endpoints_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'deprecated')",
            name="ck_api_integration_registry_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_api_integration_registry_name", "api_integration_registry", ["name"], unique=False)

    op.create_table(
        "external_api_endpoints",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("external_api_id", sa.String(length=64), nullable=False),
        sa.Column("method", sa.String(length=16), nullable=False),
        sa.Column("external_path", sa.String(length=1024), nullable=False),
        sa.Column("request_schema", sa.JSON(), nullable=True),
        sa.Column("response_schema", sa.JSON(), nullable=True),
        sa.Column("requires_authentication", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["external_api_id"],
            ["api_integration_registry.id"],
            name="fk_external_api_endpoints_external_api_id",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_external_api_endpoints_external_api_id",
        "external_api_endpoints",
        ["external_api_id"],
        unique=False,
    )

    op.create_table(
        "consolidation_leases",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("resource_id", sa.String(length=64), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("group_key", sa.String(length=2048), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("resource_id", name="uq_consolidation_leases_resource_id"),
    )
    op.create_index("ix_consolidation_leases_token", "consolidation_leases", ["token"], unique=False)
    op.create_index("ix_consolidation_leases_expires_at", "consolidation_leases", ["expires_at"], unique=False)

    op.create_table(
        "consolidation_audits",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("keep_id", sa.String(length=64), nullable=False),
        sa.Column("removed_ids_json", sa.JSON(), nullable=False),
        sa.Column("forced", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("atomic", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("endpoints_migrated", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("resources_removed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("errors_json", sa.JSON(), nullable=False),
        sa.Column("validation_json", sa.JSON(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_consolidation_audits_keep_id", "consolidation_audits", ["keep_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_consolidation_audits_keep_id", table_name="consolidation_audits")
    op.drop_table("consolidation_audits")

    op.drop_index("ix_consolidation_leases_expires_at", table_name="consolidation_leases")
    op.drop_index("ix_consolidation_leases_token", table_name="consolidation_leases")
    op.drop_table("consolidation_leases")

    op.drop_index("ix_external_api_endpoints_external_api_id", table_name="external_api_endpoints")
    op.drop_table("external_api_endpoints")

    op.drop_index("ix_api_integration_registry_name", table_name="api_integration_registry")
    op.drop_table("api_integration_registry")
