from functools import wraps

import jwt
from flask import flash, jsonify, redirect, request, session, url_for
from werkzeug.exceptions import HTTPException, InternalServerError

from learncenter.core.api_client import UNEXPECTED_ERROR, handle_api_error
from learncenter.core.logging_service import LoggingService

SUPER_ADMIN_ID = 1


def get_user_id_from_token(token):
    """Admin id from the JWT payload (`sub`, else `id`); None if unreadable"""
    if not token:
        return None
    # The API signs the token; the dashboard only reads the admin id out of it
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    id_field = payload.get('sub', payload.get('id'))
    try:
        return int(id_field) if id_field is not None else None
    except (TypeError, ValueError):
        return None


def is_super_admin():
    return session.get('admin_id') == SUPER_ADMIN_ID


def store_credentials(token, username=None):
    session['access_token'] = token
    session['admin_id'] = get_user_id_from_token(token)
    if username:
        session['admin_username'] = username


def clear_credentials():
    for key in ('access_token', 'admin_id', 'admin_username'):
        session.pop(key, None)


def is_logged_in():
    return bool(session.get('access_token'))


def admin_required(f):
    """Decorator for admin pages: redirect to login when signed out"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_logged_in():
            flash('Please sign in to access this page.', 'error')
            return redirect(url_for('admin.login', next=request.path))
        return f(*args, **kwargs)
    return decorated_function


def api_login_required(f):
    """Decorator for admin JSON endpoints"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_logged_in():
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def api_error(response):
    """JSON error for a failed ApiResponse; a 401 from the API ends the session"""
    if response.unauthorized:
        clear_credentials()
    status = response.status if 400 <= response.status < 600 else 502
    return jsonify({'error': handle_api_error(response)}), status


def unexpected_error(error):
    """Error handler for module blueprints: HTTP errors pass through, the rest are logged"""
    if isinstance(error, HTTPException):
        return error
    LoggingService.log_error_with_traceback(request.blueprint or 'app', error, {'path': request.path})
    if '/api/' in request.path or request.is_json:
        return jsonify({'error': UNEXPECTED_ERROR}), 500
    return InternalServerError()
