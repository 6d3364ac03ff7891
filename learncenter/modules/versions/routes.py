"""
Website Version Routes
======================

List/activate pages plus the editor's JSON endpoints. The editor page
receives a token for its own VersionEditor; every drag, duplicate,
upload and submit call carries that token back.
"""

from flask import render_template, request, redirect, url_for, session, jsonify, flash, current_app

from learncenter.core.api_client import get_api, handle_api_error
from learncenter.core.logging_service import LoggingService
from learncenter.modules.dashboard.auth import admin_required, api_error, api_login_required, unexpected_error
from . import versions_bp
from .service import load_editor, submit_editor, upload_media, upload_summary
from .slots import MEDIA, EntityRef, parse_ref
from .store import EditorNotFound, get_editor_store


def _slot_sizes():
    config = current_app.config
    return {
        'teacher_slots': int(config.get('FEATURED_TEACHER_SLOTS', 6)),
        'student_slots': int(config.get('FEATURED_STUDENT_SLOTS', 6)),
        'gallery_slots': int(config.get('GALLERY_SLOTS', 15)),
    }


def _checkout(token):
    return get_editor_store().checkout(token, owner=session.get('admin_id'))


def _state(editor, **extra):
    payload = {'success': True, 'state': editor.to_dict()}
    payload.update(extra)
    return jsonify(payload)


def _media_ref(data):
    ref = parse_ref(data.get('id'))
    if not isinstance(ref, EntityRef) or ref.domain != MEDIA:
        return None
    return ref


@versions_bp.errorhandler(EditorNotFound)
def editor_not_found(error):
    return jsonify({'error': 'Editor session expired. Reload the page to continue.'}), 404


versions_bp.register_error_handler(Exception, unexpected_error)


# ===== Pages =====

@versions_bp.route('/')
@admin_required
def versions_list():
    """All website versions"""
    res = get_api().web.get_all()
    versions = []
    if res.error:
        flash(handle_api_error(res), 'error')
    elif isinstance(res.data, list):
        versions = res.data
    return render_template('versions/list.html', versions=versions)


@versions_bp.route('/<int:version_id>/activate', methods=['POST'])
@api_login_required
def activate_version(version_id):
    """Make one version the live site"""
    res = get_api().web.set_active(version_id)
    if res.error:
        return api_error(res)
    LoggingService.log_user_action('versions', f"activated version {version_id}")
    return jsonify({'success': True, 'message': f"Version {version_id} activated"})


@versions_bp.route('/new')
@admin_required
def new_version():
    return _open_editor(None)


@versions_bp.route('/<int:version_id>/edit')
@admin_required
def edit_version(version_id):
    return _open_editor(version_id)


def _open_editor(version_id):
    editor, errors = load_editor(get_api(), version_id, **_slot_sizes())
    for message in errors:
        flash(message, 'error')
    if editor is None:
        return redirect(url_for('versions.versions_list'))

    token = get_editor_store().open(editor, owner=session.get('admin_id'))
    return render_template('versions/editor.html', token=token, state=editor.to_dict())


# ===== Editor API =====

@versions_bp.route('/api/editor/<token>', methods=['GET'])
@api_login_required
def editor_state(token):
    with _checkout(token) as editor:
        return _state(editor)


@versions_bp.route('/api/editor/<token>/drag-start', methods=['POST'])
@api_login_required
def drag_start(token):
    data = request.get_json(silent=True) or {}
    with _checkout(token) as editor:
        active = editor.drag.start(parse_ref(data.get('active')), data.get('width'), data.get('height'))
        return _state(editor, dragging=active is not None)


@versions_bp.route('/api/editor/<token>/drag-end', methods=['POST'])
@api_login_required
def drag_end(token):
    data = request.get_json(silent=True) or {}
    with _checkout(token) as editor:
        changed = editor.drag.end(parse_ref(data.get('over')))
        return _state(editor, changed=changed)


@versions_bp.route('/api/editor/<token>/drag-cancel', methods=['POST'])
@api_login_required
def drag_cancel(token):
    with _checkout(token) as editor:
        editor.drag.cancel()
        return _state(editor)


@versions_bp.route('/api/editor/<token>/media/duplicate', methods=['POST'])
@api_login_required
def duplicate_media(token):
    data = request.get_json(silent=True) or {}
    ref = _media_ref(data)
    if ref is None:
        return jsonify({'error': 'Unknown media item'}), 400

    with _checkout(token) as editor:
        copy = editor.gallery.duplicate(ref)
        if copy is None:
            return jsonify({'error': 'Media item not found'}), 404
        return _state(editor, item=copy.to_dict())


@versions_bp.route('/api/editor/<token>/media/remove', methods=['POST'])
@api_login_required
def remove_media(token):
    """
    Remove a media item from the editor. Originals need `confirm: true`;
    without it the answer is 409 and nothing changes.
    """
    data = request.get_json(silent=True) or {}
    ref = _media_ref(data)
    if ref is None:
        return jsonify({'error': 'Unknown media item'}), 400
    confirmed = data.get('confirm') is True

    with _checkout(token) as editor:
        item = editor.gallery.find(ref)
        if item is None:
            return jsonify({'error': 'Media item not found'}), 404
        if not item.is_duplicate and not confirmed:
            return jsonify({
                'confirm_required': True,
                'message': 'Delete this media?',
            }), 409
        editor.gallery.remove(ref, confirm=lambda _item: confirmed)
        return _state(editor)


@versions_bp.route('/api/editor/<token>/media/upload', methods=['POST'])
@api_login_required
def upload_editor_media(token):
    files = [f for f in request.files.getlist('files') if f and f.filename]
    if not files:
        return jsonify({'error': 'No files selected'}), 400

    with _checkout(token) as editor:
        uploaded, errors = upload_media(editor, get_api(), files)
        return _state(
            editor,
            uploaded=len(uploaded),
            errors=errors,
            message=upload_summary(len(uploaded)) if uploaded else None,
        )


@versions_bp.route('/api/editor/<token>/header-image', methods=['POST'])
@api_login_required
def header_image(token):
    file = request.files.get('header_img')
    if not file or not file.filename:
        return jsonify({'error': 'No image file provided'}), 400
    if not (file.mimetype or '').startswith('image/'):
        return jsonify({'error': 'Only image files are allowed'}), 400

    with _checkout(token) as editor:
        editor.set_header_image(file.filename, file.read(), file.mimetype)
        return _state(editor)


@versions_bp.route('/api/editor/<token>/fields', methods=['POST'])
@api_login_required
def update_fields(token):
    data = request.get_json(silent=True) or {}
    with _checkout(token) as editor:
        try:
            updated = editor.update_fields(data)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return _state(editor, updated=updated)


def _int_id(data, key):
    try:
        return int(data.get(key))
    except (TypeError, ValueError):
        return None


@versions_bp.route('/api/editor/<token>/phones/toggle', methods=['POST'])
@api_login_required
def toggle_phone(token):
    phone_id = _int_id(request.get_json(silent=True) or {}, 'phone_id')
    if phone_id is None:
        return jsonify({'error': 'phone_id is required'}), 400
    with _checkout(token) as editor:
        selected = editor.toggle_phone(phone_id)
        return _state(editor, selected=selected)


@versions_bp.route('/api/editor/<token>/phones/main', methods=['POST'])
@api_login_required
def main_phone(token):
    phone_id = _int_id(request.get_json(silent=True) or {}, 'phone_id')
    if phone_id is None:
        return jsonify({'error': 'phone_id is required'}), 400
    with _checkout(token) as editor:
        if not editor.set_main_phone(phone_id):
            return jsonify({'error': 'Select the phone before making it the main one'}), 400
        return _state(editor)


@versions_bp.route('/api/editor/<token>/socials/toggle', methods=['POST'])
@api_login_required
def toggle_social(token):
    social_id = _int_id(request.get_json(silent=True) or {}, 'social_id')
    if social_id is None:
        return jsonify({'error': 'social_id is required'}), 400
    with _checkout(token) as editor:
        selected = editor.toggle_social(social_id)
        return _state(editor, selected=selected)


@versions_bp.route('/api/editor/<token>/submit', methods=['POST'])
@api_login_required
def submit(token):
    with _checkout(token) as editor:
        res = submit_editor(editor, get_api())
        if res.error:
            return api_error(res)
        return _state(
            editor,
            message='Changes saved successfully',
            description=f"Version {editor.version_id} has been updated.",
        )
