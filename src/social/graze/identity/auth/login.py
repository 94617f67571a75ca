"""
Login Completion

This module implements the verify step that runs after an identity provider has authenticated a
user. Strategies call it with the provider's tokens and the normalized profile; it resolves the
provider account to a local user.

Login Flow:
1. Find or create the OAuthIdentity for (provider, uid)
2. Record the latest profile snapshot and tokens on the identity
3. Concurrently fetch the user linked to the identity and persist the identity
4. Return the linked user, or create a new user named after the profile and link it

The outcome is returned as a `LoginResult` holding either the user or the error that stopped the
login, never both. Errors never escape `oauth_v2`.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from social.graze.identity.auth.profile import Profile
from social.graze.identity.auth.store import IdentityStore
from social.graze.identity.model.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """
    Outcome of a login: exactly one of `user` and `error` is set.
    """

    user: Optional[User] = None
    error: Optional[BaseException] = None

    def __post_init__(self) -> None:
        if (self.user is None) == (self.error is None):
            raise ValueError("LoginResult requires exactly one of user or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, user: User) -> "LoginResult":
        return cls(user=user)

    @classmethod
    def failure(cls, error: BaseException) -> "LoginResult":
        return cls(error=error)


Verify = Callable[[str, Optional[str], Profile], Awaitable[LoginResult]]
"""
Verify callable bound into strategies: (access_token, refresh_token, profile) -> LoginResult
"""


async def oauth_v2(
    store: IdentityStore,
    access_token: str,
    refresh_token: Optional[str],
    profile: Profile,
) -> LoginResult:
    """
    Complete an OAuth 2.0 login.

    Args:
        store: Identity store used for every read and write
        access_token: Access token issued by the provider
        refresh_token: Refresh token, when the provider issues one
        profile: Normalized provider profile

    Returns:
        LoginResult: the linked user on success, or the error that stopped the login
    """
    try:
        logger.debug("%s", profile)
        logger.debug(
            "provider:%s will log in user:{name=%s uid=%s}",
            profile.provider,
            profile.display_name,
            profile.id,
        )

        identity = await store.find_or_create(profile.provider, profile.id)
        identity.profile_json = profile.as_json()
        identity.access_token = access_token
        if refresh_token is not None:
            identity.refresh_token = refresh_token

        # Both must finish before deciding whether to create a user.
        user, saved = await asyncio.gather(
            store.get_user(identity), store.save(identity), return_exceptions=True
        )
        for outcome in (user, saved):
            if isinstance(outcome, BaseException):
                raise outcome

        if user is not None:
            return LoginResult.success(user)

        created_user = await store.create_user(profile.display_name)
        linked_user = await store.set_user(identity, created_user)

        return LoginResult.success(linked_user)

    except Exception as e:
        logger.exception("login error")
        return LoginResult.failure(e)


V2 = oauth_v2
