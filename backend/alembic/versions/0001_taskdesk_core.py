"""create users, lists, categories, tasks, notes, reminders, events, preferences and audit tables

Revision ID: 0001_taskdesk_core
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_taskdesk_core"
down_revision = None
branch_labels = None
depends_on = None


def _id_column() -> sa.Column:
    return sa.Column("Id", sa.String(length=36), primary_key=True)


def _owner_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "UserId",
            sa.String(length=36),
            sa.ForeignKey("users.Id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "CreatedByUserId",
            sa.String(length=36),
            sa.ForeignKey("users.Id", ondelete="CASCADE"),
            nullable=False,
        ),
    ]


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column("CreatedAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("UpdatedAt", sa.DateTime(timezone=True), nullable=False),
    ]


def _owner_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_UserId", table, ["UserId"])
    op.create_index(f"ix_{table}_CreatedByUserId", table, ["CreatedByUserId"])


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        sa.Column("Name", sa.String(length=120), nullable=False),
        sa.Column("Email", sa.String(length=254), nullable=False),
        sa.Column("PasswordHash", sa.String(length=255), nullable=False),
        sa.Column("Role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column(
            "ManagerId",
            sa.String(length=36),
            sa.ForeignKey("users.Id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("IsActive", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamp_columns(),
        sa.CheckConstraint(
            '"ManagerId" IS NULL OR "ManagerId" <> "Id"',
            name="ck_users_manager_not_self",
        ),
    )
    op.create_index("ix_users_Email", "users", ["Email"], unique=True)
    op.create_index("ix_users_ManagerId", "users", ["ManagerId"])

    op.create_table(
        "refresh_tokens",
        _id_column(),
        sa.Column(
            "UserId",
            sa.String(length=36),
            sa.ForeignKey("users.Id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("TokenHash", sa.String(length=255), nullable=False),
        sa.Column("CreatedAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ExpiresAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("RevokedAt", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_refresh_tokens_UserId", "refresh_tokens", ["UserId"])

    op.create_table(
        "todo_lists",
        _id_column(),
        *_owner_columns(),
        sa.Column("Title", sa.String(length=255), nullable=False),
        sa.Column("Description", sa.Text(), nullable=True),
        *_timestamp_columns(),
    )
    _owner_indexes("todo_lists")

    op.create_table(
        "categories",
        _id_column(),
        *_owner_columns(),
        sa.Column("Name", sa.String(length=120), nullable=False),
        sa.Column("Color", sa.String(length=7), nullable=False, server_default="#4f8cff"),
        *_timestamp_columns(),
        sa.UniqueConstraint("UserId", "Name", name="uq_categories_user_name"),
    )
    _owner_indexes("categories")

    op.create_table(
        "tasks",
        _id_column(),
        *_owner_columns(),
        sa.Column(
            "ListId",
            sa.String(length=36),
            sa.ForeignKey("todo_lists.Id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "CategoryId",
            sa.String(length=36),
            sa.ForeignKey("categories.Id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("Title", sa.String(length=255), nullable=False),
        sa.Column("Description", sa.Text(), nullable=True),
        sa.Column("Priority", sa.String(length=10), nullable=False, server_default="medium"),
        sa.Column("Status", sa.String(length=20), nullable=False, server_default="not_started"),
        sa.Column("DueDate", sa.DateTime(timezone=True), nullable=True),
        sa.Column("CompletedAt", sa.DateTime(timezone=True), nullable=True),
        sa.Column("EstimatedMinutes", sa.Integer(), nullable=False, server_default="30"),
        *_timestamp_columns(),
    )
    _owner_indexes("tasks")
    op.create_index("ix_tasks_ListId", "tasks", ["ListId"])
    op.create_index("ix_tasks_CategoryId", "tasks", ["CategoryId"])
    op.create_index("ix_tasks_user_status", "tasks", ["UserId", "Status"])
    op.create_index("ix_tasks_user_created", "tasks", ["UserId", "CreatedAt"])

    op.create_table(
        "notes",
        _id_column(),
        *_owner_columns(),
        sa.Column(
            "CategoryId",
            sa.String(length=36),
            sa.ForeignKey("categories.Id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("Title", sa.String(length=255), nullable=False),
        sa.Column("Content", sa.Text(), nullable=False),
        sa.Column("Pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamp_columns(),
    )
    _owner_indexes("notes")
    op.create_index("ix_notes_CategoryId", "notes", ["CategoryId"])

    op.create_table(
        "calendar_events",
        _id_column(),
        *_owner_columns(),
        sa.Column(
            "TaskId",
            sa.String(length=36),
            sa.ForeignKey("tasks.Id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("Title", sa.String(length=255), nullable=False),
        sa.Column("Description", sa.Text(), nullable=True),
        sa.Column("StartsAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("EndsAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("Location", sa.String(length=255), nullable=True),
        *_timestamp_columns(),
    )
    _owner_indexes("calendar_events")
    op.create_index("ix_calendar_events_TaskId", "calendar_events", ["TaskId"])
    op.create_index("ix_calendar_events_StartsAt", "calendar_events", ["StartsAt"])

    op.create_table(
        "reminders",
        _id_column(),
        *_owner_columns(),
        sa.Column(
            "TaskId",
            sa.String(length=36),
            sa.ForeignKey("tasks.Id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "EventId",
            sa.String(length=36),
            sa.ForeignKey("calendar_events.Id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("Message", sa.String(length=500), nullable=False),
        sa.Column("RemindAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("IsSent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("SentAt", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
    )
    _owner_indexes("reminders")
    op.create_index("ix_reminders_TaskId", "reminders", ["TaskId"])
    op.create_index("ix_reminders_EventId", "reminders", ["EventId"])
    op.create_index("ix_reminders_user_remind_at", "reminders", ["UserId", "RemindAt"])

    op.create_table(
        "user_preferences",
        _id_column(),
        sa.Column(
            "UserId",
            sa.String(length=36),
            sa.ForeignKey("users.Id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("Theme", sa.String(length=10), nullable=False, server_default="system"),
        sa.Column("Language", sa.String(length=5), nullable=False, server_default="sr"),
        sa.Column("LayoutDensity", sa.String(length=12), nullable=False, server_default="comfortable"),
        sa.Column("Timezone", sa.String(length=64), nullable=False, server_default="Europe/Belgrade"),
        *_timestamp_columns(),
    )

    op.create_table(
        "admin_audit_logs",
        _id_column(),
        sa.Column(
            "AdminId",
            sa.String(length=36),
            sa.ForeignKey("users.Id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("TargetUserId", sa.String(length=36), nullable=True),
        sa.Column("Action", sa.String(length=60), nullable=False),
        sa.Column("Details", sa.Text(), nullable=True),
        sa.Column("CreatedAt", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_admin_audit_logs_AdminId", "admin_audit_logs", ["AdminId"])
    op.create_index("ix_admin_audit_logs_TargetUserId", "admin_audit_logs", ["TargetUserId"])


def downgrade() -> None:
    op.drop_table("admin_audit_logs")
    op.drop_table("user_preferences")
    op.drop_table("reminders")
    op.drop_table("calendar_events")
    op.drop_table("notes")
    op.drop_table("tasks")
    op.drop_table("categories")
    op.drop_table("todo_lists")
    op.drop_table("refresh_tokens")
    op.drop_table("users")
