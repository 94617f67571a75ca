"""
Authentication Layer

This package links identity-provider logins to local users.

Key Components:
- profile.py: Normalized provider profile
- store.py: Identity store interface and its PostgreSQL implementation
- login.py: Login-completion handler (`oauth_v2`) and `LoginResult`
- strategy.py: Strategy base classes and the OAuth 2.0 authorization code flow
- providers.py: GitHub, Google and Facebook strategies
- passport.py: Strategy registry and conditional provider setup
"""
