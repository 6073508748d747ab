"""Data stores for persistence.

Stores handle:
- PostgreSQL: DB session, ORM operations
- Gateway: the record-level interface services depend on

No business/authorization logic in stores - that belongs in services.
"""
