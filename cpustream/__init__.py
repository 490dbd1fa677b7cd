"""
Flask application factory and extension initialization.
"""
import eventlet
import os
import json
import math
eventlet.monkey_patch()

from flask import Flask, abort, send_from_directory
from flask_socketio import SocketIO
from flask_cors import CORS

# Initialize extensions
socketio = SocketIO(
    async_mode='eventlet',
    logger=False,
    engineio_logger=False,
    ping_timeout=60,
    ping_interval=25,
    transports=['websocket', 'polling']
)

def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)

def parse_config_data(config_data) -> dict:
    """Validate JSON overrides and map them onto config keys.

    Raises ValueError on the first invalid entry so that a bad file is
    rejected as a whole.
    """
    if not isinstance(config_data, dict):
        raise ValueError("Configuration root must be an object")
    overrides = {}

    stream = config_data.get('stream', {})
    if not isinstance(stream, dict):
        raise ValueError("'stream' must be an object")
    if 'interval' in stream:
        interval = stream['interval']
        if not _is_number(interval) or interval <= 0:
            raise ValueError(f"stream.interval must be a positive number, got {interval!r}")
        overrides['CPU_INTERVAL'] = float(interval)
    if 'sampleWindow' in stream:
        window = stream['sampleWindow']
        if window is not None and (not _is_number(window) or window < 0):
            raise ValueError(f"stream.sampleWindow must be a non-negative number or null, got {window!r}")
        overrides['CPU_SAMPLE_WINDOW'] = window
    if 'skipBusyTicks' in stream:
        if not isinstance(stream['skipBusyTicks'], bool):
            raise ValueError(f"stream.skipBusyTicks must be a boolean, got {stream['skipBusyTicks']!r}")
        overrides['SKIP_BUSY_TICKS'] = stream['skipBusyTicks']

    cors = config_data.get('cors', {})
    if not isinstance(cors, dict):
        raise ValueError("'cors' must be an object")
    if 'allowed_origins' in cors:
        origins = cors['allowed_origins']
        if origins != '*' and not (isinstance(origins, list) and all(isinstance(o, str) for o in origins)):
            raise ValueError(f"cors.allowed_origins must be '*' or a list of strings, got {origins!r}")
        overrides['CORS_ORIGINS'] = origins

    return overrides

def load_config_file(app) -> None:
    """Apply overrides from the optional JSON config file."""
    path = app.config.get('CONFIG_FILE')
    if not path:
        return
    if not os.path.exists(path):
        app.logger.warning(f"Configuration file not found at {path}")
        return

    app.logger.info(f"Found config at {path}, loading configuration...")
    try:
        with open(path, 'r') as f:
            overrides = parse_config_data(json.load(f))
    except Exception as e:
        app.logger.error(f"Error loading configuration, keeping defaults: {str(e)}")
        return

    app.config.update(overrides)
    app.logger.info(f"Loaded configuration overrides: {sorted(overrides)}")

def create_app(config_object=None):
    """Create and configure the Flask application."""
    app = Flask(__name__, static_folder=None)

    if config_object:
        app.config.from_object(config_object)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    load_config_file(app)

    origins = app.config.get('CORS_ORIGINS', '*')
    CORS(app, resources={r"/*": {"origins": origins}})

    # Handlers must be registered before init_app so every app picks them up
    from .sockets import bp as sockets_bp
    from .sockets.events import emit_reading, log_session_status
    socketio.init_app(app, cors_allowed_origins=origins)

    from .broadcasts.sessions import session_manager
    from .monitors import CpuLoadMonitor
    monitor = CpuLoadMonitor(app.config.get('CPU_SAMPLE_WINDOW'))
    session_manager.configure(app, monitor.current_load, emit_reading)

    if app.config.get('STATUS_LOG_INTERVAL'):
        eventlet.spawn(log_session_status, app)

    app.register_blueprint(sockets_bp)

    @app.errorhandler(404)
    def not_found_error(error):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def internal_error(error):
        return {'error': 'Internal server error'}, 500

    # Serve the browser UI
    @app.route('/', defaults={'path': ''})
    @app.route('/<path:path>')
    def serve_ui(path):
        static_folder = app.config['STATIC_FOLDER']
        if path and os.path.exists(os.path.join(static_folder, path)):
            return send_from_directory(static_folder, path)
        # Missing assets are real 404s, everything else is client-side routing
        if path.startswith('static/'):
            abort(404)
        return send_from_directory(static_folder, 'index.html')

    return app
