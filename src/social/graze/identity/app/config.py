"""
Configuration Module for the Identity Service

This module defines the configuration system for the identity service, using Pydantic for
settings validation and dependency injection through AppKeys.

The configuration follows these principles:
1. Environment-based configuration with sensible defaults
2. Strong validation and typing through Pydantic
3. Dependency injection pattern using aiohttp's app context
4. Provider credentials are optional; a provider without them is simply not offered

The Settings class serves as the central configuration point, loaded from environment variables
with defaults suitable for development environments. All application components access settings
and shared resources through typed AppKeys to maintain clean dependency injection.

Key configuration areas include:
- Service identification and networking
- Database connection
- Identity provider client credentials
- Monitoring and observability
"""

import asyncio
import logging
from typing import Final, Optional
from aio_statsd import TelegrafStatsdClient
from pydantic import (
    AliasChoices,
    Field,
    PostgresDsn,
)
from pydantic_settings import BaseSettings
from aiohttp import web
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    AsyncSession,
)
from aiohttp import ClientSession

from social.graze.identity.auth.passport import Authenticator
from social.graze.identity.auth.store import IdentityStore
from social.graze.identity.auth.strategy import StrategyConfig
from social.graze.identity.model.health import HealthGauge


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the identity service.

    This class uses Pydantic's BaseSettings to automatically load values from environment
    variables, with sensible defaults for development environments.

    Provider credentials are read from ``<PROVIDER>_CLIENT_ID`` and ``<PROVIDER>_CLIENT_SECRET``.
    They default to None; `strategy_config` hands them to `setup_strategy`, which skips any
    provider with a missing value.
    """

    # Environment and debugging settings
    debug: bool = False
    """
    Enable debug mode for verbose logging and development features.
    Set with DEBUG=true environment variable.
    """

    # Network and service identification settings
    http_port: int = Field(alias="port", default=5100)
    """
    HTTP port for the service to listen on.
    Set with PORT environment variable.
    """

    external_hostname: str = "localhost:5100"
    """
    Public hostname for the service, used for generating provider callback URLs.
    Set with EXTERNAL_HOSTNAME environment variable.
    """

    # Monitoring and error reporting
    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    # Database connection
    pg_dsn: PostgresDsn = Field(
        "postgresql+asyncpg://postgres:password@db/identity",
        validation_alias=AliasChoices("pg_dsn", "database_url"),
    )  # type: ignore
    """
    PostgreSQL connection string for database access.
    Set with PG_DSN or DATABASE_URL environment variables.
    Default: postgresql+asyncpg://postgres:password@db/identity
    """

    # Identity provider credentials
    github_client_id: Optional[str] = None
    github_client_secret: Optional[str] = None

    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None

    facebook_client_id: Optional[str] = None
    facebook_client_secret: Optional[str] = None

    # Monitoring and observability settings
    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    statsd_prefix: str = "identity"
    """
    Prefix for all StatsD metrics from this service.
    Set with STATSD_PREFIX environment variable.
    """

    def callback_url(self, provider: str) -> str:
        return f"https://{self.external_hostname}/auth/{provider}/callback"

    def strategy_config(self, provider: str) -> StrategyConfig:
        """
        Build the strategy configuration for a provider from its environment settings.
        """
        return StrategyConfig(
            client_id=getattr(self, f"{provider}_client_id", None),
            client_secret=getattr(self, f"{provider}_client_secret", None),
            callback_url=self.callback_url(provider),
            env_prefix=provider,
        )


# Application context keys for dependency injection
SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

DatabaseAppKey: Final = web.AppKey("database", AsyncEngine)
"""AppKey for accessing the SQLAlchemy async database engine"""

DatabaseSessionMakerAppKey: Final = web.AppKey(
    "database_session_maker", async_sessionmaker[AsyncSession]
)
"""AppKey for accessing the SQLAlchemy async session factory"""

IdentityStoreAppKey: Final = web.AppKey("identity_store", IdentityStore)
"""AppKey for accessing the identity store used to complete logins"""

AuthenticatorAppKey: Final = web.AppKey("authenticator", Authenticator)
"""AppKey for accessing the registry of active provider strategies"""

SessionAppKey: Final = web.AppKey("http_session", ClientSession)
"""AppKey for accessing the shared aiohttp client session"""

HealthGaugeAppKey: Final = web.AppKey("health_gauge", HealthGauge)
"""AppKey for accessing the health monitoring gauge"""

TickHealthTaskAppKey: Final = web.AppKey("tick_health_task", asyncio.Task[None])
"""AppKey for the background task that monitors service health"""

TelegrafStatsdClientAppKey: Final = web.AppKey(
    "telegraf_statsd_client", TelegrafStatsdClient
)
"""AppKey for the Telegraf/StatsD metrics client"""
