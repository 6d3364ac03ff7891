"""
Website Versions Module
=======================

Admin interface for "web version" records, the configurations that
compose the public site.

Provides:
- Version list and activation
- The drag-and-drop version editor (featured teachers, featured students,
  media gallery) backed by the slot composition engine
- Media upload into the editor's library
- Submission of the full arrangement to the REST API
"""

from flask import Blueprint

versions_bp = Blueprint(
    'versions',
    __name__,
    url_prefix='/admin/versions',
    template_folder='templates',
)

from . import routes

__all__ = ['versions_bp']
