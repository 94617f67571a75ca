"""
Graze Identity - social login identity service

This module implements the identity layer behind a web application's social login. Third-party
identity providers (GitHub, Google, Facebook) authenticate the user, and this service links the
provider account to a local user record, creating the user on first login.

Key Components:
- app: Web application layer with request handlers, settings and server configuration
- auth: Strategy registry, provider strategies, the login-completion handler and identity store
- model: Database models for local users and linked OAuth identities

Architecture Overview:
1. Provider Registration:
   - Each provider is set up at startup only when its client credentials are configured
   - Misconfigured providers are skipped and never offered as a login option

2. Login Completion:
   - The provider's authorization code is exchanged for tokens and a profile
   - The (provider, uid) identity is found or created atomically
   - The identity is linked to an existing user, or a new user is created and linked

3. Persistence:
   - PostgreSQL through SQLAlchemy's async interface
   - Composite uniqueness on (provider, uid) guarantees one identity per provider account
"""
