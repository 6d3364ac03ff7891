"""
Centralized logging service for the Learning Center dashboard.
Tags every record with its source component and the current request context.
"""

import json
import logging
import traceback
from flask import request, session, has_request_context

DEFAULT_LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def configure_logging(app):
    """Attach a stream handler to the package logger using the app's LOG_LEVEL"""
    level_name = str(app.config.get('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)

    package_logger = logging.getLogger('learncenter')
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        package_logger.addHandler(handler)


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return {}

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()

        return {
            'ip_address': ip_address,
            'request_path': request.path,
            'admin_id': session.get('admin_id'),
        }

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message for a source component

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (api, auth, versions, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier
        """
        context = LoggingService._get_request_context()
        if user_id is not None:
            context['admin_id'] = user_id

        if isinstance(details, dict):
            details = json.dumps(details, default=str)

        parts = [message]
        if details:
            parts.append(f"details={details}")
        if context.get('request_path'):
            parts.append(f"path={context['request_path']}")
        if context.get('admin_id') is not None:
            parts.append(f"admin={context['admin_id']}")

        logger = logging.getLogger(f'learncenter.{source}')
        logger.log(getattr(logging, level.upper(), logging.INFO), ' | '.join(parts))

    @staticmethod
    def info(source, message, details=None, user_id=None):
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def warning(source, message, details=None, user_id=None):
        LoggingService.log('WARNING', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def log_user_action(source, action, user_id=None, details=None):
        """Log user actions (login, submit, activate, etc.)"""
        LoggingService.info(source, f"User action: {action}", details, user_id)

    @staticmethod
    def log_api_call(source, endpoint, method='GET', status_code=200, details=None):
        """Log calls to the external API"""
        message = f"API {method} {endpoint} - Status: {status_code}"
        if status_code == 0 or status_code >= 500:
            level = 'ERROR'
        elif status_code >= 400:
            level = 'WARNING'
        else:
            level = 'DEBUG'
        LoggingService.log(level, source, message, details)

    @staticmethod
    def log_security_event(message, details=None):
        """Log security-related events (failed logins, rejected tokens)"""
        LoggingService.warning('security', message, details)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

