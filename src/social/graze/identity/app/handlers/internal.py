from aiohttp import web

from social.graze.identity.app.config import AuthenticatorAppKey, HealthGaugeAppKey


async def handle_internal_providers(request: web.Request):
    """List the providers that initialized at startup."""
    authenticator = request.app[AuthenticatorAppKey]
    return web.json_response({"providers": authenticator.names()})


async def handle_internal_ready(request: web.Request):
    health_gauge = request.app[HealthGaugeAppKey]
    if await health_gauge.is_healthy():
        return web.Response(status=200)
    return web.Response(status=503)


async def handle_internal_alive(request: web.Request):
    return web.Response(status=200)
