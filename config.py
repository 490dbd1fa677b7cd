"""
Application configuration settings.
"""
import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

class Config:
    """Base configuration."""
    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev')

    # Network listener - HTTP assets and the socket upgrade share this port
    HOST = os.environ.get('CPUSTREAM_HOST', '0.0.0.0')
    PORT = int(os.environ.get('CPUSTREAM_PORT', 3000))

    # Browser UI
    STATIC_FOLDER = os.path.join(BASE_DIR, 'public')

    # CORS settings - may be overridden by the JSON config file
    CORS_ORIGINS = '*'

    # Optional JSON overrides
    CONFIG_FILE = os.environ.get('CPUSTREAM_CONFIG')

    # Streaming settings
    CPU_INTERVAL = 1  # Seconds between cpuData ticks
    CPU_SAMPLE_WINDOW = 0.1  # Seconds psutil measures over per reading
    SKIP_BUSY_TICKS = False  # Skip a tick while the previous query is pending

    # Logging
    LOG_LEVEL = 'INFO'
    STATUS_LOG_INTERVAL = 60  # Seconds between session reports, 0 disables

class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'

class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = True
    TESTING = True
    CONFIG_FILE = None
    CPU_INTERVAL = 0.05
    CPU_SAMPLE_WINDOW = None
    STATUS_LOG_INTERVAL = 0

class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False

# Map environment names to config classes
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
