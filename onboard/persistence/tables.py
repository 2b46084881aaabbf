"""SQLAlchemy table definitions for the onboarding service.

Tables are used through SQLAlchemy Core only; rows are mapped to the
immutable domain models by hand in ``mappers``. They match the schema
created by the Alembic migrations.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# INVITATIONS TABLE (keyed by code, never deleted)
# ============================================================================
invitations_table = Table(
    "invitations",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    Column("code", String(64), nullable=False, unique=True),
    # Not a foreign key: admin issuers bootstrap the community without a member row
    Column("issuer_id", UUID(as_uuid=True), nullable=False),
    Column("target_handle", String(255), nullable=True),
    Column(
        "status",
        Enum(
            "pending",
            "accepted",
            "expired",
            "cancelled",
            name="invitation_status",
        ),
        nullable=False,
        server_default="pending",
    ),
    Column("expires_at", TIMESTAMP(timezone=True), nullable=False),
    Column(
        "accepted_by_member_id",
        UUID(as_uuid=True),
        ForeignKey("members.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
    ),
    Column("accepted_at", TIMESTAMP(timezone=True), nullable=True),
    Column("reservation_token", String(64), nullable=True),
    Column("reserved_until", TIMESTAMP(timezone=True), nullable=True),
    # Optimistic-lock column, bumped by every compare-and-swap
    Column("version", Integer, nullable=False, server_default="0"),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    CheckConstraint(
        "status != 'accepted' OR accepted_by_member_id IS NOT NULL",
        name="ck_invitations_accepted_has_member",
    ),
)

Index("idx_invitations_issuer_id", invitations_table.c.issuer_id)
# Sweep scans pending rows by expiry
Index(
    "idx_invitations_pending_expires_at",
    invitations_table.c.expires_at,
    postgresql_where=invitations_table.c.status == "pending",
)

# ============================================================================
# MEMBERS TABLE (soft-deleted, never hard-deleted)
# ============================================================================
members_table = Table(
    "members",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    # GitHub username, lowercase, write-once
    Column("external_handle", String(39), nullable=False, unique=True),
    # Chat identity of the registering actor
    Column("transport_id", String(255), nullable=False, unique=True),
    Column("transport_handle", String(255), nullable=True),
    Column("display_name", String(100), nullable=False),
    Column(
        "role",
        Enum(
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
        ),
        nullable=False,
    ),
    Column("organization", String(255), nullable=True),
    Column("country", String(100), nullable=True),
    Column("identity_profile", JSONB, nullable=False),
    Column("identity_verified_at", TIMESTAMP(timezone=True), nullable=False),
    Column("reputation_score", Integer, nullable=False, server_default="0"),
    Column("invited_by_member_id", UUID(as_uuid=True), nullable=True),
    Column(
        "invitation_id",
        UUID(as_uuid=True),
        ForeignKey("invitations.id"),
        nullable=True,
        unique=True,
    ),
    Column("registration_session_id", UUID(as_uuid=True), nullable=True),
    Column(
        "status",
        Enum(
            "pending",
            "active",
            "suspended",
            "banned",
            name="member_status",
        ),
        nullable=False,
        server_default="active",
    ),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column("deleted_at", TIMESTAMP(timezone=True), nullable=True),
    CheckConstraint("reputation_score >= 0", name="ck_members_reputation_non_negative"),
)

Index("idx_members_reputation_score", members_table.c.reputation_score.desc())
Index("idx_members_invited_by", members_table.c.invited_by_member_id)
Index("idx_members_display_name", members_table.c.display_name)
