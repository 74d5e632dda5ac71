"""Accounts API: registration, login, password recovery, email verification and newsletter."""
