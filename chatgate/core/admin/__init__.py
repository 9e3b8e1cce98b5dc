"""
Admin console sessions.

Provides:
- AdminSessionManager: create / is_valid / destroy / cleanup
- AdminConfig: password, cookie and cleanup settings
"""

from .config import AdminConfig, get_admin_config, reset_admin_config
from .session_manager import (
    AdminSession,
    AdminSessionManager,
    CleanupResult,
    generate_token,
    get_admin_session_manager,
    hash_token,
    reset_admin_session_manager,
)

__all__ = [
    "AdminConfig",
    "get_admin_config",
    "reset_admin_config",
    "AdminSession",
    "AdminSessionManager",
    "CleanupResult",
    "generate_token",
    "get_admin_session_manager",
    "hash_token",
    "reset_admin_session_manager",
]
