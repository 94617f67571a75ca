"""OAuth identity data model.

Provides the SQLAlchemy model linking an identity-provider account to a local
user, and the statement backing the atomic find-or-create lookup.
"""
from typing import Any, Optional
from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSON, insert
from ulid import ULID

from social.graze.identity.model.base import Base, guidpk, str64, str512, str1024


class OAuthIdentity(Base):
    """Provider account linked to a local user.

    One row exists per (provider, uid) pair. OAuth 2.0 flows populate
    ``access_token`` and ``refresh_token``; OAuth 1.0 flows populate ``token``
    and ``token_secret``. ``profile_json`` holds the latest profile payload
    returned by the provider, verbatim.
    """

    __tablename__ = "oauth_identities"

    guid: Mapped[guidpk]
    uid: Mapped[str512]
    provider: Mapped[str64]

    # OAuth v2 fields
    access_token: Mapped[Optional[str1024]]
    refresh_token: Mapped[Optional[str1024]]

    # OAuth v1 fields
    token: Mapped[Optional[str1024]]
    token_secret: Mapped[Optional[str1024]]

    profile_json: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    user_guid: Mapped[Optional[str]] = mapped_column(
        String(512), ForeignKey("users.guid"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    __table_args__ = (
        Index("idx_oauth_identities_provider_uid", "provider", "uid", unique=True),
        Index("idx_oauth_identities_user_guid", "user_guid"),
    )


def find_or_create_identity_stmt(provider: str, uid: str, now: datetime):
    """Create PostgreSQL insert statement for a (provider, uid) identity.

    Inserts a new, unlinked identity unless one already exists for the pair,
    in which case the statement does nothing. Run it and select the row in the
    same transaction to get find-or-create semantics without duplicates.
    """
    return (
        insert(OAuthIdentity)
        .values(
            [
                {
                    "guid": str(ULID()),
                    "provider": provider,
                    "uid": uid,
                    "created_at": now,
                    "updated_at": now,
                }
            ]
        )
        .on_conflict_do_nothing(index_elements=["provider", "uid"])
    )
