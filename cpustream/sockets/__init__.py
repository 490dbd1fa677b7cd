"""
Sockets blueprint initialization.
"""
from flask import Blueprint

bp = Blueprint('sockets', __name__)

__all__ = ['bp']

# Registers the Socket.IO handlers, imported after the blueprint to avoid circular imports
from . import events  # noqa: E402,F401
