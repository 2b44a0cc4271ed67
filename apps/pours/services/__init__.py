"""
Pours services - Business logic layer.

This package contains all business operations for the pours app:
- Session windowing (resolve, close stale, repair orphans)
- Pour logging, editing and deletion
- Session reads and edits
"""

from .session_windows import (
    get_inactivity_gap,
    resolve_session,
    get_current_session,
    close_stale_sessions,
    assign_orphaned_pours,
    refresh_user_sessions,
    get_orphaned_pour_summary,
)

from .pour_management import (
    log_pour,
    get_pour,
    get_user_pours,
    update_pour,
    delete_pour,
    get_user_sessions,
    get_session,
    update_session,
)

from .exceptions import (
    PoursServiceError,
    PourNotFoundError,
    PourSessionNotFoundError,
    BottleNotOpenedError,
    InvalidPourError,
)

__all__ = [
    # Session windowing
    'get_inactivity_gap',
    'resolve_session',
    'get_current_session',
    'close_stale_sessions',
    'assign_orphaned_pours',
    'refresh_user_sessions',
    'get_orphaned_pour_summary',
    # Pour management
    'log_pour',
    'get_pour',
    'get_user_pours',
    'update_pour',
    'delete_pour',
    'get_user_sessions',
    'get_session',
    'update_session',
    # Exceptions
    'PoursServiceError',
    'PourNotFoundError',
    'PourSessionNotFoundError',
    'BottleNotOpenedError',
    'InvalidPourError',
]
