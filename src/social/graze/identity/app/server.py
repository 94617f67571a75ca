import asyncio
import contextlib
import os
import logging
from time import time
from typing import (
    Optional,
)
from aio_statsd import TelegrafStatsdClient
import jinja2
from aiohttp import web
import aiohttp_jinja2
import aiohttp
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from social.graze.identity.app.config import (
    AuthenticatorAppKey,
    DatabaseAppKey,
    DatabaseSessionMakerAppKey,
    HealthGaugeAppKey,
    IdentityStoreAppKey,
    SessionAppKey,
    Settings,
    SettingsAppKey,
    TelegrafStatsdClientAppKey,
    TickHealthTaskAppKey,
)
from social.graze.identity.app.handlers.auth import (
    handle_login_page,
    handle_provider_callback,
    handle_provider_login,
)
from social.graze.identity.app.handlers.internal import (
    handle_internal_alive,
    handle_internal_providers,
    handle_internal_ready,
)
from social.graze.identity.app.tasks import tick_health_task
from social.graze.identity.auth.passport import Authenticator, setup_strategy
from social.graze.identity.auth.providers import PROVIDER_STRATEGIES
from social.graze.identity.auth.store import SqlIdentityStore
from social.graze.identity.model.health import HealthGauge

logger = logging.getLogger(__name__)


def setup_providers(
    settings: Settings, authenticator: Authenticator, store: SqlIdentityStore
) -> None:
    """
    Register every known provider that has its credentials configured.
    """
    for provider, strategy in PROVIDER_STRATEGIES.items():
        setup_strategy(
            provider=provider,
            strategy=strategy,
            config=settings.strategy_config(provider),
            passport=authenticator,
            store=store,
        )
    logger.info("Active providers: %s", ", ".join(authenticator.names()) or "none")


async def background_tasks(app):
    logger.info("Starting up")
    settings: Settings = app[SettingsAppKey]

    engine = create_async_engine(str(settings.pg_dsn))
    app[DatabaseAppKey] = engine
    database_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    app[DatabaseSessionMakerAppKey] = database_session

    store = SqlIdentityStore(database_session)
    app[IdentityStoreAppKey] = store
    setup_providers(settings, app[AuthenticatorAppKey], store)

    trace_config = aiohttp.TraceConfig()

    if settings.debug:

        async def on_request_start(
            session, trace_config_ctx, params: aiohttp.TraceRequestStartParams
        ):
            logging.info("Starting request: %s", params)

        async def on_request_end(session, trace_config_ctx, params):
            logging.info("Ending request: %s", params)

        trace_config.on_request_start.append(on_request_start)
        trace_config.on_request_end.append(on_request_end)

    app[SessionAppKey] = aiohttp.ClientSession(trace_configs=[trace_config])

    statsd_client = TelegrafStatsdClient(
        host=settings.statsd_host, port=settings.statsd_port, debug=settings.debug
    )
    await statsd_client.connect()
    app[TelegrafStatsdClientAppKey] = statsd_client

    logger.info("Startup complete")

    app[TickHealthTaskAppKey] = asyncio.create_task(tick_health_task(app))

    yield

    logger.info("Shutting down background tasks")

    app[TickHealthTaskAppKey].cancel()

    with contextlib.suppress(asyncio.exceptions.CancelledError):
        await app[TickHealthTaskAppKey]

    await app[DatabaseAppKey].dispose()
    await app[SessionAppKey].close()
    await app[TelegrafStatsdClientAppKey].close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        response = await handler(request)
        return response
    except web.HTTPException:
        raise
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise e


@web.middleware
async def statsd_middleware(request: web.Request, handler):
    statsd_client = request.app[TelegrafStatsdClientAppKey]
    request_method: str = request.method
    request_path = request.path

    start_time: float = time()
    response_status_code = 0

    try:
        response = await handler(request)
        response_status_code = response.status
        return response
    except web.HTTPException as e:
        response_status_code = e.status
        raise e
    except Exception as e:
        statsd_client.increment(
            "identity.server.request.exception",
            1,
            tag_dict={
                "exception": type(e).__name__,
                "path": request_path,
                "method": request_method,
            },
        )
        raise e
    finally:
        statsd_client.timer(
            "identity.server.request.time",
            time() - start_time,
            tag_dict={"path": request_path, "method": request_method},
        )
        statsd_client.increment(
            "identity.server.request.count",
            1,
            tag_dict={
                "path": request_path,
                "method": request_method,
                "status": response_status_code,
            },
        )


def add_routes(app: web.Application) -> None:
    app.add_routes(
        [
            web.get("/", handle_login_page),
            web.get("/auth/{provider}", handle_provider_login),
            web.get("/auth/{provider}/callback", handle_provider_callback),
        ]
    )

    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/internal/ready", handle_internal_ready),
            web.get("/internal/api/providers", handle_internal_providers),
        ]
    )


async def start_web_server(settings: Optional[Settings] = None):

    if settings is None:
        settings = Settings()  # type: ignore
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=True,
            integrations=[AioHttpIntegration()]
        )
    app = web.Application(middlewares=[statsd_middleware, sentry_middleware])

    app[SettingsAppKey] = settings
    app[HealthGaugeAppKey] = HealthGauge()
    app[AuthenticatorAppKey] = Authenticator()

    add_routes(app)

    _ = aiohttp_jinja2.setup(
        app,
        enable_async=True,
        loader=jinja2.FileSystemLoader(os.path.join(os.getcwd(), "templates")),
    )

    app.cleanup_ctx.append(background_tasks)

    return app
