import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for the Learning Center dashboard.
    The dashboard owns no database; everything lives behind the REST API.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # External REST API
    API_URL = os.getenv('API_URL', 'http://localhost:3030')
    API_TIMEOUT = int(os.getenv('API_TIMEOUT', '15'))

    # Website version editor
    # Idle editor sessions are dropped after this many seconds
    EDITOR_SESSION_TTL = int(os.getenv('EDITOR_SESSION_TTL', '3600'))
    FEATURED_TEACHER_SLOTS = 6
    FEATURED_STUDENT_SLOTS = 6
    GALLERY_SLOTS = 15

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Branding shown in the admin chrome
    BRAND_NAME = os.getenv('BRAND_NAME', 'Learning Center')

    # Port for local server (optional)
    port = int(os.getenv('PORT', '5000'))


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)
