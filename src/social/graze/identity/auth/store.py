"""
Identity Store

This module provides the storage collaborator used by the login-completion handler. The handler
only depends on the `IdentityStore` interface; `SqlIdentityStore` implements it on PostgreSQL
through SQLAlchemy's async interface.

Every operation opens its own database session from the session maker. The login handler runs
`get_user` and `save` concurrently, and a single `AsyncSession` cannot be shared between
concurrent operations.

Concurrency guarantees:
- `find_or_create` is atomic: the insert runs with ``ON CONFLICT DO NOTHING`` against the
  composite (provider, uid) unique index, and the row is selected in the same transaction.
- `set_user` only links an identity that is not linked yet. When a concurrent login linked a
  different user first, that user is returned and the one passed in is deleted, so a provider
  account never ends up with two users.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import (
    async_sessionmaker,
    AsyncSession,
)
from ulid import ULID

from social.graze.identity.model.oauth import OAuthIdentity, find_or_create_identity_stmt
from social.graze.identity.model.user import User

logger = logging.getLogger(__name__)


class IdentityStore(ABC):
    """
    Storage operations needed to complete a login.
    """

    @abstractmethod
    async def find_or_create(self, provider: str, uid: str) -> OAuthIdentity:
        """
        Return the identity for (provider, uid), creating it if absent.

        Must never create a second row for the same pair, even when called concurrently.
        """

    @abstractmethod
    async def save(self, identity: OAuthIdentity) -> None:
        """
        Persist the scalar fields (tokens and profile snapshot) of an identity.
        """

    @abstractmethod
    async def get_user(self, identity: OAuthIdentity) -> Optional[User]:
        """
        Return the user currently linked to the identity, if any.
        """

    @abstractmethod
    async def set_user(self, identity: OAuthIdentity, user: User) -> User:
        """
        Link the identity to the user and return the user actually linked.
        """

    @abstractmethod
    async def create_user(self, name: str) -> User:
        """
        Create a new local user.
        """


class SqlIdentityStore(IdentityStore):
    """
    `IdentityStore` backed by PostgreSQL.
    """

    def __init__(self, database_session_maker: async_sessionmaker[AsyncSession]):
        self.database_session_maker = database_session_maker

    async def find_or_create(self, provider: str, uid: str) -> OAuthIdentity:
        now = datetime.now(timezone.utc)
        async with self.database_session_maker() as database_session:
            async with database_session.begin():
                await database_session.execute(
                    find_or_create_identity_stmt(provider, uid, now)
                )
                identity_stmt = select(OAuthIdentity).where(
                    OAuthIdentity.provider == provider,
                    OAuthIdentity.uid == uid,
                )
                identity: OAuthIdentity = (
                    await database_session.scalars(identity_stmt)
                ).one()
                database_session.expunge(identity)
        return identity

    async def save(self, identity: OAuthIdentity) -> None:
        now = datetime.now(timezone.utc)
        async with self.database_session_maker() as database_session:
            async with database_session.begin():
                await database_session.execute(
                    update(OAuthIdentity)
                    .where(OAuthIdentity.guid == identity.guid)
                    .values(
                        access_token=identity.access_token,
                        refresh_token=identity.refresh_token,
                        token=identity.token,
                        token_secret=identity.token_secret,
                        profile_json=identity.profile_json,
                        updated_at=now,
                    )
                )
        identity.updated_at = now

    async def get_user(self, identity: OAuthIdentity) -> Optional[User]:
        async with self.database_session_maker() as database_session:
            user_stmt = (
                select(User)
                .join(OAuthIdentity, OAuthIdentity.user_guid == User.guid)
                .where(OAuthIdentity.guid == identity.guid)
            )
            return (await database_session.scalars(user_stmt)).first()

    async def set_user(self, identity: OAuthIdentity, user: User) -> User:
        async with self.database_session_maker() as database_session:
            async with database_session.begin():
                result = await database_session.execute(
                    update(OAuthIdentity)
                    .where(
                        OAuthIdentity.guid == identity.guid,
                        OAuthIdentity.user_guid.is_(None),
                    )
                    .values(user_guid=user.guid, updated_at=datetime.now(timezone.utc))
                )
                if result.rowcount == 1:
                    identity.user_guid = user.guid
                    return user

                linked_stmt = (
                    select(User)
                    .join(OAuthIdentity, OAuthIdentity.user_guid == User.guid)
                    .where(OAuthIdentity.guid == identity.guid)
                )
                linked_user: User = (await database_session.scalars(linked_stmt)).one()
                database_session.expunge(linked_user)

                if linked_user.guid != user.guid:
                    logger.info(
                        "identity %s already linked to user %s, discarding user %s",
                        identity.guid,
                        linked_user.guid,
                        user.guid,
                    )
                    await database_session.execute(
                        delete(User).where(User.guid == user.guid)
                    )

        identity.user_guid = linked_user.guid
        return linked_user

    async def create_user(self, name: str) -> User:
        user = User(guid=str(ULID()), name=name, created_at=datetime.now(timezone.utc))
        async with self.database_session_maker() as database_session:
            async with database_session.begin():
                database_session.add(user)
                await database_session.flush()
                database_session.expunge(user)
        return user
