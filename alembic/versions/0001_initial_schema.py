"""organizations, users, api_keys and audit_logs"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# Révisions Alembic
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

PLANS = ("starter", "professional", "enterprise")
STATUSES = ("active", "trialing", "past_due", "cancelled", "expired", "pending")
SCOPES = ("member", "support", "admin")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("plan", sa.Enum(*PLANS, name="subscriptionplan"), nullable=False),
        sa.Column("subscription_status", sa.Enum(*STATUSES, name="subscriptionstatus"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_organizations_name"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "organization_id",
            sa.Integer(),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("firstname", sa.String(length=100), nullable=True),
        sa.Column("lastname", sa.String(length=100), nullable=True),
        sa.Column("avatar", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    op.create_table(
        "api_keys",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("prefix", sa.String(length=32), nullable=False),
        sa.Column("key_hash", sa.String(length=128), nullable=False),
        sa.Column("scope", sa.Enum(*SCOPES, name="apiscope"), nullable=False, server_default="member"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "organization_id",
            sa.Integer(),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_api_keys_name"),
        sa.UniqueConstraint("prefix", name="uq_api_keys_prefix"),
        sa.UniqueConstraint("key_hash", name="uq_api_keys_key_hash"),
    )
    op.create_index("ix_api_keys_organization_id", "api_keys", ["organization_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("entity_name", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        # Pas de FK: l'acteur peut être supprimé, la trace reste.
        sa.Column("performed_by", sa.Integer(), nullable=True),
        sa.Column(
            "organization_id",
            sa.Integer(),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_audit_logs_created_at", "audit_logs", [sa.text("created_at DESC")])
    op.create_index(
        "ix_audit_logs_org_created_at", "audit_logs", ["organization_id", sa.text("created_at DESC")]
    )
    op.create_index(
        "ix_audit_logs_action_created_at", "audit_logs", ["action", sa.text("created_at DESC")]
    )
    op.create_index(
        "ix_audit_logs_entity_type_created_at", "audit_logs", ["entity_type", sa.text("created_at DESC")]
    )
    op.create_index(
        "ix_audit_logs_performed_by_created_at", "audit_logs", ["performed_by", sa.text("created_at DESC")]
    )


def downgrade() -> None:
    for name in (
        "ix_audit_logs_performed_by_created_at",
        "ix_audit_logs_entity_type_created_at",
        "ix_audit_logs_action_created_at",
        "ix_audit_logs_org_created_at",
        "ix_audit_logs_created_at",
    ):
        op.drop_index(name, table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_api_keys_organization_id", table_name="api_keys")
    op.drop_table("api_keys")
    op.drop_index("ix_users_organization_id", table_name="users")
    op.drop_table("users")
    op.drop_table("organizations")
    sa.Enum(name="apiscope").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="subscriptionstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="subscriptionplan").drop(op.get_bind(), checkfirst=True)
