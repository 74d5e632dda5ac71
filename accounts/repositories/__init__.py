"""
Persistence adapters.

Repositories wrap the request-scoped SQLAlchemy session; services depend on
them instead of issuing queries directly.
"""
