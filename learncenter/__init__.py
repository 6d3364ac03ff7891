"""
Learning Center - Admin Dashboard
=================================

Flask admin dashboard for a learning center website, backed by an
external REST API:
- Admin authentication and session management
- CRUD for teachers, students, media, icons, phones, socials and messages
- The website version editor: drag-and-drop composition of featured
  teachers, featured students and the media gallery

Usage:
    from flask import Flask
    from learncenter import LearnCenter

    app = Flask(__name__)
    LearnCenter(app)
"""

import copy

from .core.config import Config
from .core.logging_service import configure_logging

__version__ = '0.1.0'
__author__ = 'Laurence Stephan'

DEFAULT_FEATURES = {
    'dashboard': True,
    'resources': True,
    'versions': True,
}

# Config keys copied onto app.config unless the app already sets them
CONFIG_KEYS = [
    'SECRET_KEY',
    'API_URL',
    'API_TIMEOUT',
    'EDITOR_SESSION_TTL',
    'FEATURED_TEACHER_SLOTS',
    'FEATURED_STUDENT_SLOTS',
    'GALLERY_SLOTS',
    'LOG_LEVEL',
    'BRAND_NAME',
]


class LearnCenter:
    """Registers the learning center modules on a Flask app"""

    def __init__(self, app=None, config=None):
        self._config = copy.deepcopy(config or {})
        self._registered = []
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        for key in CONFIG_KEYS:
            if app.config.get(key) is None:
                app.config[key] = getattr(Config, key)
        if 'brand_name' in self._config:
            app.config['BRAND_NAME'] = self._config['brand_name']

        features = dict(DEFAULT_FEATURES)
        features.update(self._config.get('features', {}))
        self._config['features'] = features

        configure_logging(app)
        self._register_modules(app, features)

        app.extensions['learncenter'] = self

        @app.context_processor
        def inject_learncenter():
            return {
                'brand_name': app.config.get('BRAND_NAME') or 'Learning Center',
                'learncenter_config': self._config,
            }

    def _register_modules(self, app, features):
        # The dashboard owns login and the session guards; it is always on
        from .modules.dashboard import dashboard_bp
        app.register_blueprint(dashboard_bp)
        self._registered.append('dashboard')

        if features.get('resources'):
            from .modules.resources import resources_bp
            app.register_blueprint(resources_bp)
            self._registered.append('resources')

        if features.get('versions'):
            from .modules.versions import versions_bp
            app.register_blueprint(versions_bp)
            self._registered.append('versions')

    def get_registered_modules(self):
        return list(self._registered)

    @property
    def config(self):
        return self._config


__all__ = ['LearnCenter', '__version__']
