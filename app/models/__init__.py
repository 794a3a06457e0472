"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all runs
  2. Other modules can import from app.models directly
"""

from app.models.role import Role, RoleName, DEFAULT_ROLE  # noqa: F401
from app.models.user import User, UserType, user_roles  # noqa: F401
