"""Authentication and authorization.

Learn: Users register or log in with a password and receive a signed
JWT session token. Every protected call presents it as a bearer
credential; the auth gate decodes it into a SessionContext (user id,
username, role) that services use for role checks and row scoping.
"""
