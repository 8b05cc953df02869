"""Route modules for the auth service API."""
from . import auth

__all__ = ["auth"]
