"""
Per-connection broadcast sessions.
"""
from .sessions import (  # noqa: F401
    CPU_EVENT,
    SessionManager,
    StreamSession,
    format_reading,
    session_manager
)

__all__ = ['CPU_EVENT', 'SessionManager', 'StreamSession', 'format_reading', 'session_manager']
