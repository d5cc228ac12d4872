"""
Campus Crush — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from app.models.user import User
from app.models.profile import Profile
from app.models.connection import Connection
from app.models.message import Message
from app.models.report import Report

__all__ = [
    "User",
    "Profile",
    "Connection",
    "Message",
    "Report",
]
