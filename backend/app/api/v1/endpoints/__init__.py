# API endpoints
from . import portfolio, projects, users

__all__ = ["portfolio", "projects", "users"]
