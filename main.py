"""
Main application entry point.
"""
import os
import signal
import sys
import eventlet
eventlet.monkey_patch()

from cpustream import create_app, socketio
from config import config

# Get config based on environment
config_name = os.getenv('FLASK_ENV', 'default')
config_class = config[config_name]
app = create_app(config_class)

def signal_handler(signum, frame):
    """Handle shutdown signals by stopping every CPU stream."""
    print(f"Received signal {signum}, stopping CPU streams...")
    from cpustream.sockets.events import cleanup_websocket_state
    with app.app_context():
        cleanup_websocket_state()
    eventlet.sleep(0)  # Yield to other greenlets
    sys.exit(0)

def worker_init():
    """Register signal handlers."""
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

if __name__ == '__main__':
    worker_init()
    print(f"Server running on http://localhost:{app.config['PORT']}")
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'])
