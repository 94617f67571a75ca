"""
Identity Application Layer

This package implements the web application layer for the identity service, handling HTTP
requests and responses using the aiohttp framework.

Key Components:
- cli.py: Entry point for running the application
- server.py: Web server configuration, middleware setup and provider registration
- config.py: Configuration management using Pydantic settings
- handlers/: Request handlers for login and internal endpoints
- tasks.py: Background health monitoring
- util/: Operator utilities

The application uses several middleware layers:
- Statsd middleware for metrics collection
- Sentry middleware for error reporting

It provides the following main endpoints:
- Login page (/)
- Provider login and callback endpoints (/auth/{provider}, /auth/{provider}/callback)
- Internal endpoints (/internal/*)
"""
