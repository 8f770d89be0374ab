"""access/ -- Orchestration of the access-control kernel.

Layer rule: access/ imports from core/, auth/credentials, auth/tokens and
storage/. It does NOT import from api/ or fastapi.
"""
