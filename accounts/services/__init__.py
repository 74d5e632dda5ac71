"""
High-level use cases for the Accounts API.

Each service module orchestrates repositories/adapters to implement business
rules (create user, reset password, verify email, etc.). Controllers call
these services instead of touching the database directly.
"""
