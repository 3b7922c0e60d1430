"""Authentication module."""

from app.modules.auth.models import User, hash_password, verify_password
from app.modules.auth.repository import UserRepository

__all__ = [
    "User",
    "hash_password",
    "verify_password",
    "UserRepository",
]
