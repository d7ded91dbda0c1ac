"""Database models package.

This package contains the SQLAlchemy ORM model definitions for the application.
Each model lives in its own module and is re-exported here for convenience.
"""

# Re-export model classes from individual modules
from .password import Password  # noqa: F401
from .user import User  # noqa: F401
from .password_reset import PasswordReset  # noqa: F401
from .email_confirmation import EmailConfirmation  # noqa: F401
from .coffee import Coffee  # noqa: F401

__all__ = ["User", "Password", "PasswordReset", "EmailConfirmation", "Coffee"]
