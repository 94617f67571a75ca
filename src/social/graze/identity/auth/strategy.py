"""
Authentication Strategies

A strategy integrates one identity provider's login protocol. It is constructed with its
configuration and a verify callable, and registered with the `Authenticator`.

`OAuth2Strategy` implements the OAuth 2.0 Authorization Code Grant (RFC 6749) as far as needed
to obtain a profile:
1. `authorization_redirect` builds the URL the user is sent to
2. `exchange_code` trades the authorization code for tokens at the token endpoint
3. `fetch_profile` reads the user's profile with the access token
4. `authenticate` runs 2 and 3 and hands the tokens and profile to the verify callable

Provider-specific subclasses supply the endpoints, default scope and `parse_profile`.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode
from aiohttp import ClientError, ClientSession
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from social.graze.identity.auth.login import LoginResult, Verify
from social.graze.identity.auth.profile import Profile

logger = logging.getLogger(__name__)


class StrategyError(Exception):
    """Raised when the provider rejects a token exchange or profile request."""


class StrategyConfig(BaseModel):
    """
    Client registration for one provider.

    Values are derived from the environment, so any of them may be missing. The fields listed in
    `required_fields` must all be present for the provider to initialize.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    required_fields: ClassVar[Tuple[str, ...]] = (
        "client_id",
        "client_secret",
        "callback_url",
    )

    client_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("client_id", "clientID")
    )
    client_secret: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("client_secret", "clientSecret")
    )
    callback_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("callback_url", "callbackURL")
    )
    scope: Optional[str] = None

    env_prefix: Optional[str] = Field(default=None, exclude=True)
    """
    Prefix of the environment variables the values were read from, e.g. ``GITHUB``.
    """

    def env_name(self, field: str) -> str:
        """Environment variable a field is read from."""
        if self.env_prefix:
            return f"{self.env_prefix}_{field}".upper()
        return field

    def missing_fields(self) -> List[str]:
        return [name for name in self.required_fields if getattr(self, name) is None]


class Strategy(ABC):
    """
    Base class for authentication strategies.
    """

    name: ClassVar[Optional[str]] = None

    def __init__(
        self, config: Union[StrategyConfig, Mapping[str, Any]], verify: Verify
    ) -> None:
        if not isinstance(config, StrategyConfig):
            config = StrategyConfig.model_validate(dict(config))
        self.config = config
        self.verify = verify

    @abstractmethod
    async def authenticate(self, http_session: ClientSession, code: str) -> LoginResult:
        """
        Complete a login from the provider's callback.
        """


class OAuth2Strategy(Strategy):
    """
    OAuth 2.0 authorization code strategy.
    """

    authorization_url: ClassVar[str]
    token_url: ClassVar[str]
    profile_url: ClassVar[str]
    default_scope: ClassVar[str] = ""

    @property
    def scope(self) -> str:
        return self.config.scope or self.default_scope

    def authorization_redirect(self, state: str) -> str:
        """
        Build the provider authorization URL for a new login.

        Args:
            state: Opaque value echoed back on the callback to prevent CSRF

        Returns:
            str: URL to redirect the user to
        """
        query = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.callback_url,
            "response_type": "code",
            "state": state,
        }
        if self.scope:
            query["scope"] = self.scope
        return f"{self.authorization_url}?{urlencode(query)}"

    async def exchange_code(
        self, http_session: ClientSession, code: str
    ) -> Tuple[str, Optional[str]]:
        """
        Exchange an authorization code for tokens.

        Returns:
            Tuple[str, Optional[str]]: the access token and, if issued, the refresh token

        Raises:
            StrategyError: If the token request fails or the endpoint returns an error
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "redirect_uri": self.config.callback_url,
        }
        headers = {"Accept": "application/json"}
        try:
            async with http_session.post(
                self.token_url, data=data, headers=headers
            ) as resp:
                if resp.status != 200:
                    raise StrategyError(
                        f"{self.name}: token endpoint returned {resp.status}"
                    )
                token_response = await resp.json(content_type=None)
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("provider:%s token request failed: %r", self.name, e)
            raise StrategyError(f"{self.name}: token request failed") from e

        if not isinstance(token_response, dict):
            raise StrategyError(f"{self.name}: malformed token response")

        if "error" in token_response:
            logger.debug(
                "provider:%s token endpoint error: %s", self.name, token_response
            )
            raise StrategyError(
                f"{self.name}: {token_response.get('error_description') or token_response['error']}"
            )

        access_token: Optional[str] = token_response.get("access_token")
        if not access_token:
            raise StrategyError(f"{self.name}: no access token in token response")
        return access_token, token_response.get("refresh_token")

    async def fetch_profile(
        self, http_session: ClientSession, access_token: str
    ) -> Profile:
        """
        Fetch and normalize the authenticated user's profile.

        Raises:
            StrategyError: If the profile endpoint fails or the profile is malformed
        """
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        try:
            async with http_session.get(self.profile_url, headers=headers) as resp:
                if resp.status != 200:
                    raise StrategyError(
                        f"{self.name}: profile endpoint returned {resp.status}"
                    )
                data = await resp.json(content_type=None)
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug("provider:%s profile request failed: %r", self.name, e)
            raise StrategyError(f"{self.name}: profile request failed") from e

        try:
            return self.parse_profile(data)
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.debug("provider:%s malformed profile: %r", self.name, e)
            raise StrategyError(f"{self.name}: malformed profile") from e

    @abstractmethod
    def parse_profile(self, data: Dict[str, Any]) -> Profile:
        """
        Normalize the provider's profile payload.
        """

    async def authenticate(self, http_session: ClientSession, code: str) -> LoginResult:
        access_token, refresh_token = await self.exchange_code(http_session, code)
        profile = await self.fetch_profile(http_session, access_token)
        return await self.verify(access_token, refresh_token, profile)
