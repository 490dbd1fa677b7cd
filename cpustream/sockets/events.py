"""
Socket.IO event handlers and connection management.
"""
from typing import Any, Dict
import eventlet
from flask import request, current_app
from cpustream import socketio
from cpustream.broadcasts.sessions import session_manager

def get_client_ip() -> str:
    """Resolve the client address, honouring the first X-Forwarded-For hop."""
    return request.headers.get('X-Forwarded-For', '').split(',')[0].strip() or request.remote_addr

def emit_reading(event: str, data: Dict[str, Any], sid: str) -> None:
    """Send one event to a single connection."""
    socketio.emit(event, data, to=sid)

@socketio.on('connect')
def handle_connect():
    """Start a CPU stream for the new connection."""
    try:
        sid = request.sid
        current_app.logger.info(f"Client connected: {sid} from {get_client_ip()}")
        session_manager.handle_connect(sid)
        return True

    except Exception as e:
        current_app.logger.error(f"Connection error: {str(e)}")
        return False

@socketio.on('disconnect')
def handle_disconnect(reason=None):
    """Stop the connection's CPU stream."""
    try:
        sid = request.sid
        current_app.logger.info(f"Client disconnected: {sid} (reason: {reason})")
        session_manager.handle_disconnect(sid)

    except Exception as e:
        current_app.logger.error(f"Error in disconnect handler: {str(e)}")

@socketio.on_error_default
def error_handler(e):
    """Handle errors raised by any event handler."""
    current_app.logger.error(f"WebSocket error: {str(e)}")

def cleanup_websocket_state():
    """Stop every streaming session."""
    try:
        current_app.logger.info(f"Stopping {session_manager.active_count()} CPU streams...")
        session_manager.stop_all()
    except Exception as e:
        current_app.logger.error(f"Error during cleanup: {e}")

def log_session_status(app):
    """Periodically log the number of streaming sessions."""
    interval = app.config['STATUS_LOG_INTERVAL']
    while True:
        eventlet.sleep(interval)
        with app.app_context():
            try:
                total = session_manager.active_count()
                if total == 0:
                    continue
                in_flight = sum(s.in_flight for s in list(session_manager.sessions.values()))
                current_app.logger.info(f"Session Status Report: {total} active streams, {in_flight} samples in flight")
            except Exception as e:
                current_app.logger.error(f"Status logger error: {str(e)}")
