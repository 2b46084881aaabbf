"""initial_schema

Create the onboarding schema:
- Invitations (single-use codes with optimistic-lock version and reservation)
- Members (directory of verified members, soft-deleted only)

Revision ID: 3c1f0a2d9e47
Revises:
Create Date: 2026-10-19 09:12:44.318201

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1f0a2d9e47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Create ENUM types (idempotent)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE invitation_status AS ENUM ('pending', 'accepted', 'expired', 'cancelled');
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)

    op.execute("""
        DO $$ BEGIN
            CREATE TYPE member_status AS ENUM ('pending', 'active', 'suspended', 'banned');
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)

    op.execute("""
        DO $$ BEGIN
            CREATE TYPE member_role AS ENUM (
                'student', 'developer', 'designer', 'researcher', 'founder',
                'investor', 'community_manager', 'content_creator', 'other'
            );
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)

    # ========================================================================
    # INVITATIONS table
    # ========================================================================
    op.create_table(
        "invitations",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("issuer_id", sa.UUID(), nullable=False),
        sa.Column("target_handle", sa.String(255), nullable=True),
        sa.Column(
            "status",
            postgresql.ENUM(
                "pending",
                "accepted",
                "expired",
                "cancelled",
                name="invitation_status",
                create_type=False,
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("accepted_by_member_id", sa.UUID(), nullable=True),
        sa.Column("accepted_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("reservation_token", sa.String(64), nullable=True),
        sa.Column("reserved_until", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_invitations_code"),
        sa.CheckConstraint(
            "status != 'accepted' OR accepted_by_member_id IS NOT NULL",
            name="ck_invitations_accepted_has_member",
        ),
    )
    op.create_index("idx_invitations_issuer_id", "invitations", ["issuer_id"])
    op.create_index(
        "idx_invitations_pending_expires_at",
        "invitations",
        ["expires_at"],
        postgresql_where=sa.text("status = 'pending'"),
    )

    # ========================================================================
    # MEMBERS table
    # ========================================================================
    op.create_table(
        "members",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("external_handle", sa.String(39), nullable=False),
        sa.Column("transport_id", sa.String(255), nullable=False),
        sa.Column("transport_handle", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column(
            "role",
            postgresql.ENUM(
                "student",
                "developer",
                "designer",
                "researcher",
                "founder",
                "investor",
                "community_manager",
                "content_creator",
                "other",
                name="member_role",
                create_type=False,
            ),
            nullable=False,
        ),
        sa.Column("organization", sa.String(255), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("identity_profile", postgresql.JSONB(), nullable=False),
        sa.Column("identity_verified_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("reputation_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("invited_by_member_id", sa.UUID(), nullable=True),
        sa.Column("invitation_id", sa.UUID(), nullable=True),
        sa.Column("registration_session_id", sa.UUID(), nullable=True),
        sa.Column(
            "status",
            postgresql.ENUM(
                "pending",
                "active",
                "suspended",
                "banned",
                name="member_status",
                create_type=False,
            ),
            nullable=False,
            server_default="active",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("deleted_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["invitation_id"], ["invitations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_handle", name="uq_members_external_handle"),
        sa.UniqueConstraint("transport_id", name="uq_members_transport_id"),
        sa.UniqueConstraint("invitation_id", name="uq_members_invitation_id"),
        sa.CheckConstraint(
            "reputation_score >= 0", name="ck_members_reputation_non_negative"
        ),
    )
    op.create_index(
        "idx_members_reputation_score",
        "members",
        [sa.text("reputation_score DESC")],
    )
    op.create_index("idx_members_invited_by", "members", ["invited_by_member_id"])
    op.create_index("idx_members_display_name", "members", ["display_name"])

    # Invitations and members reference each other; add the back-reference last
    op.create_foreign_key(
        "fk_invitations_accepted_by_member",
        "invitations",
        "members",
        ["accepted_by_member_id"],
        ["id"],
        ondelete="SET NULL",
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_constraint(
        "fk_invitations_accepted_by_member", "invitations", type_="foreignkey"
    )
    op.drop_index("idx_members_display_name", table_name="members")
    op.drop_index("idx_members_invited_by", table_name="members")
    op.drop_index("idx_members_reputation_score", table_name="members")
    op.drop_table("members")
    op.drop_index("idx_invitations_pending_expires_at", table_name="invitations")
    op.drop_index("idx_invitations_issuer_id", table_name="invitations")
    op.drop_table("invitations")

    op.execute("DROP TYPE IF EXISTS member_role")
    op.execute("DROP TYPE IF EXISTS member_status")
    op.execute("DROP TYPE IF EXISTS invitation_status")
