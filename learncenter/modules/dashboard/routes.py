"""
Admin Dashboard Routes
======================

Login/logout against the REST API and the dashboard landing page.
The API issues the access token; the dashboard only keeps it in the
Flask session and forwards it on every call.
"""

from datetime import datetime

from flask import render_template, request, redirect, url_for, flash, session, jsonify

from learncenter.core.api_client import get_api, handle_api_error
from learncenter.core.logging_service import LoggingService
from . import dashboard_bp
from .auth import (
    admin_required, api_error, api_login_required, clear_credentials,
    is_logged_in, is_super_admin, store_credentials,
)


def _safe_next(target):
    """Only follow local redirect targets"""
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return None


@dashboard_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Admin login route"""
    if is_logged_in():
        return redirect(url_for('admin.dashboard'))

    if request.method == 'POST':
        username = request.form.get('username', '').strip()
        password = request.form.get('password', '')

        if not username or not password:
            flash('Please enter both username and password', 'error')
            return render_template('dashboard/login.html'), 400

        api = get_api()
        res = api.auth.login(username, password)
        if res.error:
            LoggingService.log_security_event(f"Failed login for {username}", {'status': res.status})
            flash(handle_api_error(res), 'error')
            return render_template('dashboard/login.html'), 401

        store_credentials(api.token, username)
        LoggingService.log_user_action('auth', 'login', user_id=session.get('admin_id'))
        flash('Login successful', 'success')
        return redirect(_safe_next(request.args.get('next')) or url_for('admin.dashboard'))

    return render_template('dashboard/login.html')


@dashboard_bp.route('/logout')
def logout():
    """Admin logout route"""
    if is_logged_in():
        get_api().auth.logout()
    clear_credentials()
    flash('You have been logged out', 'info')
    return redirect(url_for('admin.login'))


@dashboard_bp.route('/')
@dashboard_bp.route('/dashboard')
@admin_required
def dashboard():
    """Admin dashboard landing page"""
    return render_template('dashboard/dashboard.html')


@dashboard_bp.route('/status')
def status():
    """Check admin login status (API endpoint)"""
    if is_logged_in():
        return jsonify({
            'logged_in': True,
            'admin_id': session.get('admin_id'),
            'admin_username': session.get('admin_username'),
            'super_admin': is_super_admin(),
        })
    return jsonify({'logged_in': False}), 401


@dashboard_bp.route('/api/stats')
@api_login_required
def api_stats():
    """Student and message counts for the dashboard cards"""
    api = get_api()

    students_res = api.student.get_all()
    if students_res.error:
        return api_error(students_res)
    messages_res = api.message.get_all()
    if messages_res.error:
        return api_error(messages_res)

    students = students_res.data if isinstance(students_res.data, list) else []
    messages = messages_res.data if isinstance(messages_res.data, list) else []
    return jsonify({
        'students': {'total': len(students)},
        'messages': {
            'total': len(messages),
            'unread': sum(1 for m in messages if not m.get('is_checked')),
        },
    })


@dashboard_bp.route('/api/change-password', methods=['POST'])
@api_login_required
def change_password():
    """Change the signed-in admin's password"""
    data = request.get_json(silent=True) or {}
    old_password = data.get('old_password', '')
    new_password = data.get('new_password', '')
    confirm_password = data.get('confirm_password', new_password)

    if not old_password or not new_password:
        return jsonify({'error': 'All fields are required'}), 400
    if new_password != confirm_password:
        return jsonify({'error': 'New passwords do not match'}), 400

    res = get_api().admin.change_password(session.get('admin_id'), old_password, new_password)
    if res.error:
        return api_error(res)
    return jsonify({'success': True, 'message': 'Password changed successfully'})


@dashboard_bp.app_context_processor
def utility_processor():
    """
    Add utility functions to template context
    """
    def current_year():
        """Return current year for footer"""
        return datetime.now().year

    return dict(
        current_year=current_year,
        is_super_admin=is_super_admin,
        admin_username=session.get('admin_username'),
    )
