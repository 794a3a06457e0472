"""
Pydantic schemas for the authenticated principal.

A Principal is what the request gatekeeper attaches to a request once
credentials check out: just enough to make authorization decisions. It
never carries the password hash.
"""

from pydantic import BaseModel


class Principal(BaseModel):
    """The authenticated identity attached to a request."""
    id: int
    username: str
    authorities: frozenset[str]
