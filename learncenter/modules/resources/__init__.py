"""
Resources Module
================

JSON CRUD endpoints for the learning center's plain collections
(admins, teachers, students, media, icons, phones, socials, messages).
Each endpoint forwards to the REST API; nothing is stored locally.
"""

from flask import Blueprint

resources_bp = Blueprint(
    'resources',
    __name__,
    url_prefix='/admin',
)

from . import routes

__all__ = ['resources_bp']
