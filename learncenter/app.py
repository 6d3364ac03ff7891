"""
Application factory for running the dashboard on its own.

    flask --app learncenter.app run
"""

from flask import Flask, redirect, url_for

from . import LearnCenter
from .core.config import Config


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    LearnCenter(app)

    @app.route('/')
    def index():
        return redirect(url_for('admin.dashboard'))

    return app


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=Config.port, debug=True)
