"""Baseline: practice gateway schema

Revision ID: b7c2d4e91f03
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete practice schema:
- Tenancy & identity: tenants, users, tenant_users
- Authorization: user_roles, page_permissions
- Clinical records: clients, sessions, session_notes, homework,
  client_goals, client_journal
- Files: documents, client_resources
- Settings: branding, configurations

Every tenant-scoped table carries tenant_id as the leading column of its
lookup index; repository queries always filter on it.
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "b7c2d4e91f03"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ========================================================================
    # TENANCY & IDENTITY
    # ========================================================================

    op.create_table(
        "tenants",
        sa.Column("tenant_id", sa.Text, primary_key=True),
        sa.Column("practice_name", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )
    op.create_index("idx_tenants_status", "tenants", ["status"])

    op.create_table(
        "users",
        sa.Column("user_id", sa.Text, primary_key=True),
        sa.Column("email", sa.Text, nullable=False, unique=True),
        sa.Column("first_name", sa.Text),
        sa.Column("last_name", sa.Text),
        sa.Column("password_hash", sa.Text),
        sa.Column("email_verified", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )

    op.create_table(
        "tenant_users",
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("role", sa.Text, nullable=False),
        sa.Column("created_by", sa.Text),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("user_id", "tenant_id"),
    )
    op.create_index("idx_tenant_users_tenant", "tenant_users", ["tenant_id"])

    # ========================================================================
    # AUTHORIZATION
    # ========================================================================

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("role_name", sa.Text, nullable=False),
        sa.Column("role_description", sa.Text),
        sa.Column("is_default", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_by", sa.Text),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
        sa.UniqueConstraint("tenant_id", "role_name", name="uq_user_roles_tenant_name"),
    )
    op.create_index("idx_user_roles_tenant", "user_roles", ["tenant_id"])

    op.create_table(
        "page_permissions",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("page_path", sa.Text, nullable=False),
        sa.Column("page_name", sa.Text, nullable=False),
        sa.Column("component_name", sa.Text),
        sa.Column("roles_json", sa.Text, nullable=False, server_default="[]"),
        sa.Column("updated_by", sa.Text),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )
    op.create_index(
        "idx_page_permissions_tenant_path", "page_permissions", ["tenant_id", "page_path"]
    )

    # ========================================================================
    # CLINICAL RECORDS
    # ========================================================================

    op.create_table(
        "clients",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("email", sa.Text),
        sa.Column("phone", sa.Text),
        sa.Column("address", sa.Text),
        sa.Column("date_of_birth", sa.Text),
        sa.Column("emergency_contact", sa.Text),
        sa.Column("risk_score", sa.Integer),
        sa.Column("created_by", sa.Text, nullable=False),
        sa.Column("updated_by", sa.Text, nullable=False),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )
    op.create_index("idx_clients_tenant", "clients", ["tenant_id", "created_at_utc"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Text, nullable=False),
        sa.Column("therapist_id", sa.Text),
        sa.Column("session_date", sa.Text, nullable=False),
        sa.Column("duration_minutes", sa.Integer),
        sa.Column("session_type", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="scheduled"),
        sa.Column("notes", sa.Text),
        sa.Column("created_by", sa.Text, nullable=False),
        sa.Column("updated_by", sa.Text, nullable=False),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )
    op.create_index("idx_sessions_tenant_client", "sessions", ["tenant_id", "client_id"])

    op.create_table(
        "session_notes",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("session_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Text, nullable=False),
        sa.Column("template_type", sa.Text, nullable=False),
        sa.Column("content_json", sa.Text, nullable=False),
        sa.Column("practitioner_risk_rating", sa.Integer),
        sa.Column("is_shared_with_client", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_by", sa.Text, nullable=False),
        sa.Column("updated_by", sa.Text, nullable=False),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )
    op.create_index(
        "idx_session_notes_tenant_client", "session_notes", ["tenant_id", "client_id"]
    )

    op.create_table(
        "homework",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Text, nullable=False),
        sa.Column("session_id", sa.Text),
        sa.Column("note_id", sa.Text),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("assigned_date", sa.Text, nullable=False),
        sa.Column("due_date", sa.Text),
        sa.Column("status", sa.Text, nullable=False, server_default="assigned"),
        sa.Column("completion_notes", sa.Text),
        sa.Column("completed_at", sa.Text),
        sa.Column("assigned_by", sa.Text, nullable=False),
        sa.Column("updated_by", sa.Text),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )
    op.create_index("idx_homework_tenant_client", "homework", ["tenant_id", "client_id"])

    op.create_table(
        "client_goals",
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Text, nullable=False),
        sa.Column("emotional_mental", sa.Text, nullable=False, server_default=""),
        sa.Column("physical", sa.Text, nullable=False, server_default=""),
        sa.Column("social_relational", sa.Text, nullable=False, server_default=""),
        sa.Column("spiritual", sa.Text, nullable=False, server_default=""),
        sa.Column("environmental", sa.Text, nullable=False, server_default=""),
        sa.Column("intellectual_occupational", sa.Text, nullable=False, server_default=""),
        sa.Column("financial", sa.Text, nullable=False, server_default=""),
        sa.Column("updated_by", sa.Text),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("tenant_id", "client_id"),
    )

    op.create_table(
        "client_journal",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Text, nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("session_date", sa.Text),
        sa.Column(
            "is_shared_with_practitioner", sa.Integer, nullable=False, server_default="0"
        ),
        sa.Column("created_by", sa.Text, nullable=False),
        sa.Column("updated_by", sa.Text, nullable=False),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )
    op.create_index(
        "idx_client_journal_tenant_client", "client_journal", ["tenant_id", "client_id"]
    )

    # ========================================================================
    # FILES
    # ========================================================================

    op.create_table(
        "documents",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Text),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("file_path", sa.Text, nullable=False),
        sa.Column("file_size", sa.Integer, nullable=False),
        sa.Column("mime_type", sa.Text),
        sa.Column("document_type", sa.Text, nullable=False, server_default="client_upload"),
        sa.Column("is_shared_with_client", sa.Integer, nullable=False, server_default="0"),
        sa.Column("uploaded_by", sa.Text, nullable=False),
        sa.Column("created_at_utc", sa.Text, nullable=False),
    )
    op.create_index("idx_documents_tenant_client", "documents", ["tenant_id", "client_id"])
    op.create_index("idx_documents_file_path", "documents", ["file_path"])

    op.create_table(
        "client_resources",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("client_id", sa.Text, nullable=False),
        sa.Column("resource_type", sa.Text, nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("url", sa.Text),
        sa.Column("file_path", sa.Text),
        sa.Column("file_size", sa.Integer),
        sa.Column("mime_type", sa.Text),
        sa.Column("is_active", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_by", sa.Text, nullable=False),
        sa.Column("updated_by", sa.Text, nullable=False),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )
    op.create_index(
        "idx_client_resources_tenant_client",
        "client_resources",
        ["tenant_id", "client_id", "is_active"],
    )

    # ========================================================================
    # SETTINGS
    # ========================================================================

    op.create_table(
        "branding",
        sa.Column("tenant_id", sa.Text, primary_key=True),
        sa.Column("logo_url", sa.Text, nullable=False, server_default=""),
        sa.Column("primary_color", sa.Text, nullable=False),
        sa.Column("secondary_color", sa.Text, nullable=False),
        sa.Column("created_by", sa.Text),
        sa.Column("updated_by", sa.Text),
        sa.Column("created_at_utc", sa.Text, nullable=False),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
    )

    op.create_table(
        "configurations",
        sa.Column("tenant_id", sa.Text, nullable=False),
        sa.Column("key", sa.Text, nullable=False),
        sa.Column("value_json", sa.Text, nullable=False),
        sa.Column("type", sa.Text, nullable=False, server_default="dynamic"),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("updated_by", sa.Text),
        sa.Column("updated_at_utc", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("tenant_id", "key"),
    )


def downgrade() -> None:
    op.drop_table("configurations")
    op.drop_table("branding")
    op.drop_table("client_resources")
    op.drop_table("documents")
    op.drop_table("client_journal")
    op.drop_table("client_goals")
    op.drop_table("homework")
    op.drop_table("session_notes")
    op.drop_table("sessions")
    op.drop_table("clients")
    op.drop_table("page_permissions")
    op.drop_table("user_roles")
    op.drop_table("tenant_users")
    op.drop_table("users")
    op.drop_table("tenants")
