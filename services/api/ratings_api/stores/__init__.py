"""Data stores for persistence and token revocation.

Stores handle:
- PostgreSQL: DB session, ORM operations
- Redis: access-token denylist with TTLs

No business/permission logic in stores - that belongs in services.
"""
