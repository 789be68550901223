"""
Core module for application configuration and domain logic.

Only settings are exported at package level. Modules that need the database
(auth, admin_sessions, test_links, test_session_flow) import app.models, so
import them directly: from app.core.test_session_flow import ...
"""
from .config import settings

__all__ = ["settings"]
