"""
Resource Routes
===============

Admin CRUD for every collection the REST API exposes:

    GET    /admin/<resource>/api/items
    POST   /admin/<resource>/api/items
    GET    /admin/<resource>/api/items/<id>
    PUT    /admin/<resource>/api/items/<id>
    DELETE /admin/<resource>/api/items/<id>

Multipart collections (admins, teachers, students, media, icons) take
form fields plus files; the others take JSON.
"""

from flask import request, jsonify, abort

from learncenter.core.api_client import get_api
from learncenter.core.logging_service import LoggingService
from learncenter.modules.dashboard.auth import api_error, api_login_required, is_super_admin, unexpected_error
from . import resources_bp


# ===== Validation =====

def _validate_phone(data, files):
    if not str(data.get('phone') or '').strip():
        return 'Phone cannot be empty'
    return None


def _validate_social(data, files):
    if not all(str(data.get(key) or '').strip() for key in ('name', 'url', 'icon_id')):
        return 'All fields are required'
    try:
        data['icon_id'] = int(data['icon_id'])
    except (TypeError, ValueError):
        return 'icon_id must be a number'
    return None


def _validate_icon(data, files):
    if not str(data.get('name') or '').strip():
        return 'Name is required'
    file = files.get('file')
    if file is None:
        return 'Please select an icon image'
    if not (file[2] or '').startswith('image/'):
        return 'Only image files are allowed'
    return None


RESOURCES = {
    'admins': {'api': 'admin', 'super_admin': True},
    'teachers': {'api': 'teacher', 'super_admin': True},
    'students': {'api': 'student', 'super_admin': True},
    'medias': {'api': 'media'},
    'icons': {'api': 'icon', 'validate': _validate_icon},
    'phones': {'api': 'phone', 'validate': _validate_phone},
    'socials': {'api': 'social', 'validate': _validate_social},
    'messages': {'api': 'message', 'read_only': True},
}


def _resource(name):
    options = RESOURCES.get(name)
    if options is None:
        abort(404)
    return options, getattr(get_api(), options['api'])


def _guard_write(options):
    if options.get('read_only'):
        return jsonify({'error': 'This collection is read-only'}), 405
    if options.get('super_admin') and not is_super_admin():
        return jsonify({'error': 'Only the super admin can change this collection'}), 403
    return None


def _payload(client):
    """Form fields + files for multipart collections, JSON body otherwise"""
    if client.multipart:
        data = request.form.to_dict()
        files = {
            key: (f.filename, f.stream, f.mimetype)
            for key, f in request.files.items()
            if f and f.filename
        }
        return data, files
    return dict(request.get_json(silent=True) or {}), {}


resources_bp.register_error_handler(Exception, unexpected_error)


# ===== Routes =====

@resources_bp.route('/<resource>/api/items', methods=['GET'])
@api_login_required
def list_items(resource):
    options, client = _resource(resource)
    res = client.get_all()
    if res.error:
        return api_error(res)
    return jsonify(res.data if res.data is not None else [])


@resources_bp.route('/<resource>/api/items/<int:item_id>', methods=['GET'])
@api_login_required
def get_item(resource, item_id):
    options, client = _resource(resource)
    res = client.get_by_id(item_id)
    if res.error:
        return api_error(res)
    return jsonify(res.data)


@resources_bp.route('/<resource>/api/items', methods=['POST'])
@api_login_required
def create_item(resource):
    options, client = _resource(resource)
    denied = _guard_write(options)
    if denied:
        return denied

    data, files = _payload(client)
    validate = options.get('validate')
    message = validate(data, files) if validate else None
    if message:
        return jsonify({'error': message}), 400

    res = client.create(data, files)
    if res.error:
        return api_error(res)
    LoggingService.log_user_action('resources', f"created {resource}")
    return jsonify({'success': True, 'item': res.data}), 201


@resources_bp.route('/<resource>/api/items/<int:item_id>', methods=['PUT', 'PATCH'])
@api_login_required
def update_item(resource, item_id):
    options, client = _resource(resource)
    denied = _guard_write(options)
    if denied:
        return denied

    data, files = _payload(client)
    res = client.update(item_id, data, files)
    if res.error:
        return api_error(res)
    LoggingService.log_user_action('resources', f"updated {resource} {item_id}")
    return jsonify({'success': True, 'item': res.data})


@resources_bp.route('/<resource>/api/items/<int:item_id>', methods=['DELETE'])
@api_login_required
def delete_item(resource, item_id):
    options, client = _resource(resource)
    # Messages can be deleted even though they cannot be created or edited
    if options.get('super_admin') and not is_super_admin():
        return jsonify({'error': 'Only the super admin can change this collection'}), 403

    res = client.delete(item_id)
    if res.error:
        return api_error(res)
    LoggingService.log_user_action('resources', f"deleted {resource} {item_id}")
    return jsonify({'success': True})


@resources_bp.route('/messages/api/items/<int:item_id>/checked', methods=['POST'])
@api_login_required
def set_message_checked(item_id):
    """Mark a contact message as read or unread"""
    data = request.get_json(silent=True) or {}
    checked = bool(data.get('is_checked', True))
    res = get_api().message.set_checked(item_id, checked)
    if res.error:
        return api_error(res)
    return jsonify({'success': True, 'is_checked': checked,
                    'message': 'Marked as read' if checked else 'Marked as unread'})
