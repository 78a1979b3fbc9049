"""Operator authentication.

Passwords are stored as scrypt hashes with a per-operator salt. A successful
login issues an opaque random token that is persisted in ``admin_sessions``
and handed to the browser as an HTTP-only cookie. Every request resolves the
token against the table again; expiry is checked at lookup time.
"""
