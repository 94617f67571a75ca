"""
Social Login Handlers

This module implements the web request handlers for logging in through a registered identity
provider.

Login Flow:
1. User picks a provider on the login page
2. Application stores a random state in a cookie and redirects to the provider
3. User authenticates with the provider
4. Provider redirects back with an authorization code and the state
5. Application checks the state, then the provider's strategy exchanges the code, fetches the
   profile and completes the login against the identity store
6. Application returns the linked local user

The handlers in this module provide the following endpoints:
- GET / - Login page listing the active providers
- GET /auth/{provider} - Start a login with a provider
- GET /auth/{provider}/callback - OAuth callback from the provider
"""

import json
import logging
import secrets
from aiohttp import web
import aiohttp_jinja2
import sentry_sdk

from social.graze.identity.app.config import (
    AuthenticatorAppKey,
    HealthGaugeAppKey,
    SessionAppKey,
    SettingsAppKey,
    TelegrafStatsdClientAppKey,
)
from social.graze.identity.auth.login import LoginResult
from social.graze.identity.auth.strategy import OAuth2Strategy, StrategyError

logger = logging.getLogger(__name__)

STATE_COOKIE_PREFIX = "oauth_state_"


def _json_error(exc_class, message: str):
    return exc_class(
        body=json.dumps({"error": message}),
        content_type="application/json",
    )


def _strategy_for(request: web.Request) -> OAuth2Strategy:
    provider = request.match_info["provider"]
    strategy = request.app[AuthenticatorAppKey].get(provider)
    if strategy is None:
        raise _json_error(web.HTTPNotFound, f"Unknown provider: {provider}")
    return strategy  # type: ignore


async def handle_login_page(request: web.Request):
    """
    Render the login page with one entry per registered provider.

    Providers skipped at startup for missing configuration are not listed.
    """
    authenticator = request.app[AuthenticatorAppKey]
    return await aiohttp_jinja2.render_template_async(
        "login.html", request, context={"providers": authenticator.names()}
    )


async def handle_provider_login(request: web.Request):
    """
    Start a login with the provider named in the path.

    A random state is stored in an HTTP-only cookie scoped to the provider and sent along with
    the authorization request; the callback rejects any response that does not echo it back.
    """
    settings = request.app[SettingsAppKey]
    strategy = _strategy_for(request)

    state = secrets.token_urlsafe(32)
    redirect = web.HTTPFound(strategy.authorization_redirect(state))
    redirect.set_cookie(
        f"{STATE_COOKIE_PREFIX}{strategy.name}",
        state,
        max_age=600,
        httponly=True,
        secure=not settings.debug,
        samesite="Lax",
    )
    raise redirect


async def handle_provider_callback(request: web.Request):
    """
    Handle the OAuth callback from a provider.

    Query Parameters:
        state: Must match the state cookie set when the login started
        code: Authorization code to exchange for tokens
        error: Set by the provider when the user denied access

    Returns:
        HTTP JSON response with the linked user

    Raises:
        HTTPBadRequest: On a state mismatch or missing code
        HTTPUnauthorized: When the login could not be completed
    """
    http_session = request.app[SessionAppKey]
    statsd_client = request.app[TelegrafStatsdClientAppKey]
    strategy = _strategy_for(request)

    cookie_name = f"{STATE_COOKIE_PREFIX}{strategy.name}"
    expected_state = request.cookies.get(cookie_name)
    state = request.query.get("state")
    if (
        not expected_state
        or not state
        or not secrets.compare_digest(expected_state, state)
    ):
        raise _json_error(web.HTTPBadRequest, "Invalid state")

    if "error" in request.query:
        result = LoginResult.failure(
            StrategyError(f"{strategy.name}: {request.query['error']}")
        )
    elif not request.query.get("code"):
        raise _json_error(web.HTTPBadRequest, "Missing code")
    else:
        try:
            result = await strategy.authenticate(http_session, request.query["code"])
        except Exception as e:
            result = LoginResult.failure(e)

    statsd_client.increment(
        "identity.login.count",
        1,
        tag_dict={
            "provider": strategy.name,
            "outcome": "success" if result.ok else "failure",
        },
    )

    if not result.ok:
        logger.warning("provider:%s login failed: %s", strategy.name, result.error)
        sentry_sdk.capture_exception(result.error)
        if not isinstance(result.error, StrategyError):
            await request.app[HealthGaugeAppKey].womp()
        raise _json_error(web.HTTPUnauthorized, "Authentication failed")

    user = result.user
    response = web.json_response(
        {"user": {"guid": user.guid, "name": user.name}, "provider": strategy.name}
    )
    response.del_cookie(cookie_name)
    return response
