"""Document models exposed for the data layer and imports."""
from .user import User, UserRole

__all__ = ["User", "UserRole"]
