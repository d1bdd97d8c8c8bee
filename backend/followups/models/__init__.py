"""SQLAlchemy models exposed by the backend."""
from .base import Base
from .token import Token
from .user import User
from .vehicle import Vehicle

__all__ = ["Base", "Token", "User", "Vehicle"]
