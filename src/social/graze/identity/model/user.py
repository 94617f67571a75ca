"""Local user account model.

Users are created by the login-completion handler the first time a provider
account signs in, and are referenced by linked OAuth identities.
"""
from datetime import datetime
from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from social.graze.identity.model.base import Base, guidpk, str512


class User(Base):
    """Local user account, named after the provider's display name."""

    __tablename__ = "users"

    guid: Mapped[guidpk]
    name: Mapped[str512]
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
