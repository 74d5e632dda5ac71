"""
Core utilities shared across the Accounts API.

This package hosts:
- configuration helpers (env vars, feature flags)
- the validator chain used by controllers
- cross-cutting services such as email adapters, rate limit helpers and the
  shared error responder.

Controllers and services depend on these primitives instead of reading
os.environ or building error responses themselves.
"""
