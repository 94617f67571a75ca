"""
Database Models

This package defines the database models for the identity service using SQLAlchemy ORM.

Key Models:
- base.py: Base SQLAlchemy model with common type definitions
- user.py: Local user accounts
- oauth.py: Linked OAuth identities and the find-or-create statement
- health.py: Health monitoring model

The data models follow these relationships:
- User: A local account, identified by a ULID guid
- OAuthIdentity: One provider account (provider, uid), optionally linked to one User.
  A User may have any number of linked identities.

The models use SQLAlchemy's async interface for non-blocking database operations.
"""
