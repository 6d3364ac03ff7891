"""
Dashboard Module
================

Admin dashboard shell for the learning center.

Provides core admin functionality:
- Admin login/logout against the REST API
- Session guards used by every other module
- Dashboard landing page

This is the foundation module that other admin features plug into.
"""

from flask import Blueprint

# Blueprint name is 'admin' so other modules can redirect to 'admin.login'
dashboard_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/admin',
    template_folder='templates',
)

# Import routes after blueprint is created
from . import routes

__all__ = ['dashboard_bp']
